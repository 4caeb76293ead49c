#!/usr/bin/env python3
# CUI // SP-CTI
"""Shared pytest fixtures for the segspec test suite.

Puts the project root on sys.path and provides a ``sample_app`` directory
builder plus a ``dep`` factory for NetworkDependency facts.
"""

import sys
import textwrap
from pathlib import Path

import pytest

# Ensure project root is on sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from segspec.model.dependency import Confidence, NetworkDependency  # noqa: E402


@pytest.fixture
def sample_app(tmp_path):
    """Return a builder: ``sample_app({"docker-compose.yml": "..."}, name="app")``.

    Writes each relative path (dedented) under ``tmp_path/<name>`` and returns
    the project directory.
    """

    def _build(files, name="myapp"):
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(textwrap.dedent(content), encoding="utf-8")
        return root

    return _build


@pytest.fixture
def dep():
    """Factory for NetworkDependency with test-friendly defaults."""

    def _make(source="app", target="db", port=5432, protocol="TCP",
              description="", confidence=Confidence.HIGH, source_file="test"):
        return NetworkDependency(
            source=source,
            target=target,
            port=port,
            protocol=protocol,
            description=description,
            confidence=confidence,
            source_file=source_file,
        )

    return _make

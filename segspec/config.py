#!/usr/bin/env python3
# CUI // SP-CTI
"""segspec configuration loader.

Reads ``args/segspec_config.yaml`` (or the file named by the
``SEGSPEC_CONFIG_PATH`` environment variable) and deep-merges it over the
built-in defaults below. A missing file is not an error; the defaults are
complete. A file that exists but cannot be parsed raises ConfigurationError.

Secrets such as ``GEMINI_API_KEY`` are never stored here; they are read from
the environment at the point of use.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from segspec.resilience.errors import ConfigurationError

logger = logging.getLogger("segspec.config")

BASE_DIR = Path(__file__).resolve().parent.parent
CONFIG_PATH = BASE_DIR / "args" / "segspec_config.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "walker": {
        "skip_dirs": ["node_modules", "vendor", "target", ".git", ".svn", "__pycache__"],
        "workers": 1,
    },
    "helm": {
        "binary": "helm",
        "timeout_seconds": 30,
    },
    "git": {
        "clone_timeout_seconds": 60,
    },
    "ai": {
        "http_timeout_seconds": 30,
        "max_retries": 1,
        "max_file_bytes": 100 * 1024,
        "max_content_bytes": 50 * 1024,
        "ollama": {
            "base_url": "http://localhost:11434",
            "model": "nuextract",
        },
        "gemini": {
            "model": "gemini-2.0-flash",
            "base_url": "https://generativelanguage.googleapis.com/v1beta/models",
        },
    },
    "renderer": {
        "generated_by": "segspec",
        "dns_namespace": "kube-system",
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Return a copy of ``base`` with ``override`` merged in recursively."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load segspec configuration.

    Resolution order: explicit ``path`` argument, ``SEGSPEC_CONFIG_PATH``,
    then ``args/segspec_config.yaml`` under the project root.

    Environment overrides applied last:
        SEGSPEC_OLLAMA_URL  -> ai.ollama.base_url
    """
    env_path = os.environ.get("SEGSPEC_CONFIG_PATH", "")
    config_path = Path(path) if path else (Path(env_path) if env_path else CONFIG_PATH)

    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as fh:
                loaded = yaml.safe_load(fh) or {}
        except (OSError, ValueError, yaml.YAMLError) as exc:
            raise ConfigurationError(
                f"Cannot read config {config_path}: {exc}",
                config_key=str(config_path),
            ) from exc
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Config {config_path} must be a mapping, got {type(loaded).__name__}",
                config_key=str(config_path),
            )
        config = _deep_merge(config, loaded)
    else:
        logger.debug("Config file %s not found, using defaults", config_path)

    ollama_url = os.environ.get("SEGSPEC_OLLAMA_URL", "")
    if ollama_url:
        config["ai"]["ollama"]["base_url"] = ollama_url.rstrip("/")

    return config

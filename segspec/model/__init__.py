# CUI // SP-CTI
"""Dependency data model: facts, confidence tiers and the deduplicating set."""

from segspec.model.dependency import (  # noqa: F401
    Confidence,
    DependencySet,
    NetworkDependency,
)

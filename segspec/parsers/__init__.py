# CUI // SP-CTI
"""Per-format dependency extractors and the shared value-pattern recognizer."""

from segspec.parsers.registry import ParseFunc, Registry, default_registry  # noqa: F401

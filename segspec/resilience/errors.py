#!/usr/bin/env python3
# CUI // SP-CTI
"""segspec Resilience: structured exception hierarchy.

Three failure classes matter to a scan:

- ``ParseError``: one file could not be decoded. Recoverable; the walker
  turns it into a warning keyed by the file's relative path.
- ``CollaboratorError``: an external tool or backend (helm, an AI provider)
  failed. Recoverable; reported at the boundary, the scan keeps its facts.
- ``ScanError``: scanning is impossible at all (unreadable root). Fatal.

Usage:
    from segspec.resilience.errors import ParseError

    raise ParseError("invalid YAML: mapping values are not allowed", path="k8s/app.yaml")
"""


class SegspecError(Exception):
    """Base exception for all segspec errors.

    Attributes:
        source: Name of the component or file that caused the error.
        retryable: Whether the caller should retry the operation.
    """

    def __init__(self, message: str, source: str = "", retryable: bool = False):
        super().__init__(message)
        self.source = source
        self.retryable = retryable


class SegspecTransientError(SegspecError):
    """Transient error: the operation may succeed on retry.

    Examples: network timeout, AI backend temporarily unreachable.
    """

    def __init__(self, message: str, source: str = "", retryable: bool = True):
        super().__init__(message, source=source, retryable=retryable)


class SegspecPermanentError(SegspecError):
    """Permanent error: retrying will not help.

    Examples: malformed file, missing binary, invalid configuration.
    """

    def __init__(self, message: str, source: str = "", retryable: bool = False):
        super().__init__(message, source=source, retryable=retryable)


class ParseError(SegspecPermanentError):
    """A single file's content is malformed (YAML, XML or properties syntax).

    Attributes:
        path: Path or provenance label of the offending file.
    """

    def __init__(self, message: str, path: str = ""):
        super().__init__(message, source=path, retryable=False)
        self.path = path


class ScanError(SegspecPermanentError):
    """Scanning cannot proceed (root missing, not a directory, unreadable)."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message, source=path, retryable=False)
        self.path = path


class CollaboratorError(SegspecError):
    """An external collaborator (helm, git, AI backend) failed."""


class HelmRenderError(CollaboratorError):
    """``helm template`` is missing, timed out, or exited non-zero."""

    def __init__(self, message: str, chart: str = ""):
        super().__init__(message, source="helm", retryable=False)
        self.chart = chart


class AIUnavailableError(CollaboratorError):
    """No AI backend could be reached or the response was unusable."""

    def __init__(self, message: str, provider: str = "", retryable: bool = False):
        super().__init__(message, source=provider or "ai", retryable=retryable)
        self.provider = provider


class ConfigurationError(SegspecPermanentError):
    """Configuration error: missing or invalid configuration."""

    def __init__(self, message: str, config_key: str = ""):
        super().__init__(message, source="config", retryable=False)
        self.config_key = config_key

#!/usr/bin/env python3
# CUI // SP-CTI
"""segspec Resilience Package: errors and retry.

Structured exception hierarchy for scan errors and collaborator failures,
plus the retry helper used around outbound AI backend calls.
"""

from segspec.resilience.errors import (  # noqa: F401
    AIUnavailableError,
    CollaboratorError,
    ConfigurationError,
    HelmRenderError,
    ParseError,
    ScanError,
    SegspecError,
    SegspecPermanentError,
    SegspecTransientError,
)
from segspec.resilience.retry import RetryPolicy, call_with_retry  # noqa: F401

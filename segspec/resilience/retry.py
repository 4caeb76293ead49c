#!/usr/bin/env python3
# CUI // SP-CTI
"""segspec Resilience: bounded retry for collaborator calls.

A call is retried only when it raises a ``SegspecError`` whose ``retryable``
flag is set. The collaborator decides what is transient (a refused
connection, HTTP 503) when it raises; anything else, including plain
Python exceptions, propagates on the first failure.

Usage:
    from segspec.resilience.retry import RetryPolicy, call_with_retry

    body = call_with_retry(send_request, RetryPolicy(max_retries=2), "ollama generate")
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from segspec.resilience.errors import SegspecError

logger = logging.getLogger("segspec.resilience.retry")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently a collaborator call is repeated.

    Attributes:
        max_retries: Extra attempts after the first call (0 disables retry).
        base_delay: Wait before the first retry, in seconds, before jitter.
        max_delay: Upper bound for any single wait.
    """

    max_retries: int = 1
    base_delay: float = 1.0
    max_delay: float = 8.0

    def delay_for(self, attempt: int) -> float:
        """Wait before retry number ``attempt`` (0-based).

        The ceiling doubles per attempt up to ``max_delay``; the returned value
        is drawn from the upper half of it.
        """
        ceiling = min(self.max_delay, self.base_delay * (2 ** attempt))
        return random.uniform(ceiling / 2, ceiling)


def call_with_retry(fn: Callable[[], T], policy: RetryPolicy, label: str = "",
                    on_retry: Optional[Callable[[int, SegspecError, float], None]] = None) -> T:
    """Run ``fn`` until it succeeds, fails permanently, or retries run out.

    Args:
        fn: Zero-argument callable doing one attempt.
        policy: Retry budget and backoff.
        label: Name used in log lines.
        on_retry: Optional callback(attempt, exc, delay) before each wait.

    Raises:
        SegspecError: the last failure, once it is non-retryable or the
            budget is spent.
    """
    label = label or getattr(fn, "__name__", "call")
    attempt = 0
    while True:
        try:
            return fn()
        except SegspecError as exc:
            if not exc.retryable or attempt >= policy.max_retries:
                raise
            delay = policy.delay_for(attempt)
            logger.warning("%s failed (%s), retry %d/%d in %.1fs",
                           label, exc, attempt + 1, policy.max_retries, delay)
            if on_retry:
                on_retry(attempt, exc, delay)
            time.sleep(delay)
            attempt += 1

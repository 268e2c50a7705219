"""
Configuration utilities for fetch_call_retry
"""
import asyncio
import math
import random
import re
import time
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

from .types import RetryCall, RetryConfig, RetryOverride, RetryPolicy


DEFAULT_BACKOFF_BASE_SECONDS = 0.25
DEFAULT_MAX_DELAY_SECONDS = 30.0
DEFAULT_RESPECT_RETRY_AFTER = True
DEFAULT_RETRY_METHODS = ["GET", "OPTIONS", "HEAD"]

# Default retry configuration: nothing is retried unless configured
DEFAULT_RETRY_CONFIG = RetryConfig(
    max_delay_seconds=DEFAULT_MAX_DELAY_SECONDS,
    backoff_base_seconds=DEFAULT_BACKOFF_BASE_SECONDS,
    respect_retry_after=DEFAULT_RESPECT_RETRY_AFTER,
    methods=list(DEFAULT_RETRY_METHODS),
)

_DIGITS = re.compile(r"^\d+$")

# 2**62 already exceeds any sane max delay; keeps float conversion safe
_MAX_BACKOFF_EXPONENT = 62


def calculate_backoff_delay(attempt: int, backoff_base: float, max_delay: float) -> float:
    """
    Calculate exponential backoff delay with full jitter.

    delay = random(0, base * 2^attempt), capped at max_delay

    Args:
        attempt: The current attempt number (0-indexed)
        backoff_base: Base delay in seconds
        max_delay: Upper bound in seconds

    Returns:
        Delay in seconds
    """
    ceiling = backoff_base * (2 ** min(max(attempt, 0), _MAX_BACKOFF_EXPONENT))
    delay = random.random() * ceiling
    return max(0.0, min(max_delay, delay))


def parse_retry_after(value: Optional[str], now: Optional[float] = None) -> Optional[float]:
    """
    Parse Retry-After header value.

    The Retry-After header can contain either:
    - A number of seconds to wait
    - An HTTP-date indicating when to retry

    Args:
        value: Retry-After header value
        now: Current wall-clock time (defaults to time.time())

    Returns:
        Wait time in seconds, or None if the value cannot be parsed
    """
    if not value:
        return None

    value = value.strip()
    if _DIGITS.match(value):
        return float(value)

    try:
        dt = parsedate_to_datetime(value)
    except (ValueError, TypeError, IndexError):
        return None
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    current = time.time() if now is None else now
    return max(0.0, dt.timestamp() - current)


def compute_delay(
    attempt: int,
    max_delay: float,
    respect_retry_after: bool,
    backoff_base: float,
    response: Any = None,
    explicit_delay: Optional[float] = None,
    now: Optional[float] = None,
) -> float:
    """
    Calculate the wait before the next attempt.

    Precedence:
    1. An explicit delay from the retry decision, clamped to [0, max_delay]
    2. The response's Retry-After header (when respected and parseable),
       capped at max_delay
    3. Exponential backoff with full jitter, capped at max_delay

    Args:
        attempt: The current attempt number (0-indexed)
        max_delay: Maximum delay in seconds
        respect_retry_after: Whether to honor Retry-After
        backoff_base: Base for the exponential backoff, in seconds
        response: Response of the failed attempt, if any
        explicit_delay: Delay resolved from the decision, if any
        now: Current wall-clock time, for Retry-After dates

    Returns:
        Delay in seconds, always within [0, max_delay]
    """
    if explicit_delay is not None and not math.isnan(explicit_delay):
        return max(0.0, min(max_delay, explicit_delay))

    if respect_retry_after and response is not None:
        headers = getattr(response, "headers", None)
        retry_after = headers.get("retry-after") if headers is not None else None
        seconds = parse_retry_after(retry_after, now)
        if seconds is not None and math.isfinite(seconds):
            return max(0.0, min(max_delay, seconds))

    return calculate_backoff_delay(attempt, backoff_base, max_delay)


def merge_config(config: Optional[RetryConfig] = None) -> RetryConfig:
    """
    Merge configuration with defaults.

    Args:
        config: User-provided configuration

    Returns:
        Complete configuration with defaults
    """
    if config is None:
        return DEFAULT_RETRY_CONFIG
    return config


def resolve_policy(
    config: Optional[RetryConfig] = None,
    override: RetryCall = None,
) -> RetryPolicy:
    """
    Merge the client-level policy with a per-call override.

    A bare decision passed per call applies to every failure channel.
    Knobs from a RetryOverride win over the client config; the eligible
    methods and the backoff base are client-level only.

    Args:
        config: Client-level retry configuration
        override: Per-call decision or RetryOverride

    Returns:
        The effective RetryPolicy for one call
    """
    base = merge_config(config)

    if isinstance(override, RetryOverride):
        call_override = override
    else:
        call_override = RetryOverride(decision=override)

    def pick(local: Any, fallback: Any) -> Any:
        return local if local is not None else fallback

    return RetryPolicy(
        local_status=dict(call_override.on_status or {}),
        global_status=dict(base.on_status or {}),
        call_decision=call_override.decision,
        local_network_error=call_override.on_network_error,
        global_network_error=base.on_network_error,
        local_parsing_error=call_override.on_parsing_error,
        global_parsing_error=base.on_parsing_error,
        max_delay_seconds=pick(call_override.max_delay_seconds, base.max_delay_seconds),
        backoff_base_seconds=base.backoff_base_seconds,
        respect_retry_after=pick(call_override.respect_retry_after, base.respect_retry_after),
        max_overall_time_seconds=pick(
            call_override.max_overall_time_seconds, base.max_overall_time_seconds
        ),
        methods=frozenset(
            m.upper()
            for m in (base.methods if base.methods is not None else DEFAULT_RETRY_METHODS)
        ),
    )


async def async_sleep(seconds: float) -> None:
    """
    Sleep for a specified duration (async).

    Args:
        seconds: Duration in seconds
    """
    await asyncio.sleep(seconds)

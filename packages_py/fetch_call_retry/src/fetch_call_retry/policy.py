"""
Retry policy engine: decision lookup and gating
"""
import logging
import math
import time
from collections.abc import Mapping
from typing import Optional

from .selectors import lookup_status
from .types import (
    AttemptContext,
    CallOutcome,
    OutcomeKind,
    RetryAttempts,
    RetryDecision,
    RetryPolicy,
    RetryVerdict,
)

logger = logging.getLogger("fetch_call_retry.policy")

DENY = RetryVerdict(allow=False)


def normalize_decision(decision: RetryDecision) -> Optional[RetryAttempts]:
    """
    Normalize a decision to RetryAttempts.

    True means one retry; False and None mean never. A mapping with
    "attempts" (and optional "delay") is converted.

    Args:
        decision: Raw decision value

    Returns:
        RetryAttempts, or None when the decision never retries
    """
    if decision is None or decision is False:
        return None
    if decision is True:
        return RetryAttempts(attempts=1)
    if isinstance(decision, RetryAttempts):
        return decision
    if isinstance(decision, Mapping):
        try:
            attempts = int(decision.get("attempts") or 0)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring retry decision with invalid attempts: {decision!r}")
            return None
        return RetryAttempts(attempts=attempts, delay=decision.get("delay"))

    logger.warning(f"Ignoring unsupported retry decision: {decision!r}")
    return None


def allow_and_delay(decision: RetryDecision, attempt: int) -> RetryVerdict:
    """
    Evaluate a decision for the given 0-based attempt.

    Args:
        decision: Raw decision value
        attempt: Attempts already retried so far

    Returns:
        Whether the decision permits another attempt, and its explicit delay
    """
    normalized = normalize_decision(decision)
    if normalized is None:
        return DENY

    max_attempts = max(0, int(normalized.attempts))
    if attempt >= max_attempts:
        return DENY

    delay = normalized.delay
    if isinstance(delay, (int, float)) and not isinstance(delay, bool):
        return RetryVerdict(allow=True, explicit_delay=float(delay))

    if callable(delay):
        try:
            value = float(delay(attempt))
        except Exception:
            logger.exception(f"Retry delay function failed for attempt {attempt}")
            return RetryVerdict(allow=True)
        if math.isfinite(value) and value >= 0:
            return RetryVerdict(allow=True, explicit_delay=value)

    return RetryVerdict(allow=True)


def decision_for(outcome: CallOutcome, policy: RetryPolicy) -> RetryDecision:
    """
    Find the decision that applies to an outcome.

    A per-call bare decision wins for every channel. Status outcomes then go
    through the selector tiers (local code/name, global code/name, local
    wildcard, global wildcard); network and parse failures use their single
    per-call slot, then the global one.
    """
    if outcome.kind is OutcomeKind.SUCCESS:
        return None

    if policy.call_decision is not None:
        return policy.call_decision

    if outcome.kind is OutcomeKind.NETWORK_FAILURE:
        if policy.local_network_error is not None:
            return policy.local_network_error
        return policy.global_network_error

    if outcome.kind is OutcomeKind.PARSE_FAILURE:
        if policy.local_parsing_error is not None:
            return policy.local_parsing_error
        return policy.global_parsing_error

    if outcome.status is None:
        return None
    return lookup_status(outcome.status, policy.local_status, policy.global_status)


def within_budget(
    policy: RetryPolicy,
    context: AttemptContext,
    now: Optional[float] = None,
) -> bool:
    """Check the overall time budget, measured from context.started_at."""
    budget = policy.max_overall_time_seconds
    if not budget:
        return True
    current = time.monotonic() if now is None else now
    return (current - context.started_at) < budget


def is_method_eligible(method: str, policy: RetryPolicy) -> bool:
    """Check if an HTTP method is eligible for retry."""
    return method.upper() in policy.methods


def decide(
    outcome: CallOutcome,
    policy: RetryPolicy,
    context: AttemptContext,
    method: str,
    body_replayable: bool,
    now: Optional[float] = None,
) -> RetryVerdict:
    """
    Decide whether another attempt is permitted.

    A retry needs all of: a decision granting one for this attempt, an
    eligible method, a replayable body, a remaining time budget, and a
    failure that was not a caller cancellation.

    Args:
        outcome: Outcome of the current attempt
        policy: Effective retry policy of the call
        context: Attempt counter and start time
        method: HTTP method of the call
        body_replayable: Whether the request body can be sent again
        now: Monotonic time the budget is checked at (defaults to now)

    Returns:
        RetryVerdict with the explicit delay of the decision, if any
    """
    if not outcome.is_failure:
        return DENY

    verdict = allow_and_delay(decision_for(outcome, policy), context.attempt)
    if not verdict.allow:
        return DENY

    if outcome.cancelled_by_caller:
        logger.debug("Retry denied: attempt was cancelled by the caller")
        return DENY

    if not is_method_eligible(method, policy):
        logger.debug(f"Retry denied: method {method} is not eligible")
        return DENY

    if not body_replayable:
        logger.debug("Retry denied: request body cannot be replayed")
        return DENY

    if not within_budget(policy, context, now):
        logger.debug(
            f"Retry denied: overall time budget of "
            f"{policy.max_overall_time_seconds}s exhausted"
        )
        return DENY

    return verdict

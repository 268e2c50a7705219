"""
Retry policy engine and delay calculator for fetch_call.
"""
from .types import (
    RetryAttempts,
    RetryDecision,
    RetryConfig,
    RetryOverride,
    RetryCall,
    RetryPolicy,
    RetryVerdict,
    AttemptContext,
    OutcomeKind,
    CallOutcome,
    Selector,
)
from .selectors import (
    NETWORK_ERROR,
    PARSING_ERROR,
    SPECIAL_EVENTS,
    WILDCARDS,
    STATUS_CODE_BY_NAME,
    STATUS_NAME_BY_CODE,
    code_to_name,
    status_to_wildcard,
    lookup_status,
)
from .config import (
    DEFAULT_RETRY_CONFIG,
    DEFAULT_BACKOFF_BASE_SECONDS,
    DEFAULT_MAX_DELAY_SECONDS,
    DEFAULT_RETRY_METHODS,
    calculate_backoff_delay,
    compute_delay,
    parse_retry_after,
    merge_config,
    resolve_policy,
    async_sleep,
)
from .policy import (
    normalize_decision,
    allow_and_delay,
    decision_for,
    within_budget,
    is_method_eligible,
    decide,
)


__all__ = [
    # Types
    "RetryAttempts",
    "RetryDecision",
    "RetryConfig",
    "RetryOverride",
    "RetryCall",
    "RetryPolicy",
    "RetryVerdict",
    "AttemptContext",
    "OutcomeKind",
    "CallOutcome",
    "Selector",
    # Selectors
    "NETWORK_ERROR",
    "PARSING_ERROR",
    "SPECIAL_EVENTS",
    "WILDCARDS",
    "STATUS_CODE_BY_NAME",
    "STATUS_NAME_BY_CODE",
    "code_to_name",
    "status_to_wildcard",
    "lookup_status",
    # Config
    "DEFAULT_RETRY_CONFIG",
    "DEFAULT_BACKOFF_BASE_SECONDS",
    "DEFAULT_MAX_DELAY_SECONDS",
    "DEFAULT_RETRY_METHODS",
    "calculate_backoff_delay",
    "compute_delay",
    "parse_retry_after",
    "merge_config",
    "resolve_policy",
    "async_sleep",
    # Policy
    "normalize_decision",
    "allow_and_delay",
    "decision_for",
    "within_budget",
    "is_method_eligible",
    "decide",
]


__version__ = "1.0.0"

"""
Type definitions for fetch_call_retry
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union


@dataclass
class RetryAttempts:
    """Retry decision allowing a bounded number of additional attempts"""

    attempts: int
    """Number of additional attempts, not counting the first one"""

    delay: Union[float, Callable[[int], float], None] = None
    """Fixed delay (seconds) or a function of the 0-based attempt number"""


# True = retry once, False/None = never, RetryAttempts = bounded retries.
# A plain mapping {"attempts": N, "delay": d} is accepted as well.
RetryDecision = Union[bool, RetryAttempts, Mapping[str, Any], None]

# Status selector: numeric code, symbolic name ("not_found") or wildcard ("5xx")
Selector = Union[int, str]


@dataclass
class RetryConfig:
    """Global retry policy, configured once per client"""

    on_network_error: RetryDecision = None
    """Decision for network/abort failures"""

    on_parsing_error: RetryDecision = None
    """Decision for body parse failures"""

    on_status: dict[Selector, RetryDecision] = field(default_factory=dict)
    """Decisions keyed by status code, status name or wildcard"""

    max_delay_seconds: float = 30.0
    """Upper bound for a single wait between attempts. Default: 30.0"""

    backoff_base_seconds: float = 0.25
    """Base for exponential backoff with full jitter. Default: 0.25"""

    respect_retry_after: bool = True
    """Whether to honor a Retry-After response header. Default: True"""

    max_overall_time_seconds: Optional[float] = None
    """Budget for the whole call including waits. Default: unlimited"""

    methods: list[str] = field(
        default_factory=lambda: ["GET", "OPTIONS", "HEAD"]
    )
    """HTTP methods eligible for retry at all"""


@dataclass
class RetryOverride:
    """Per-call retry policy, overriding parts of RetryConfig"""

    decision: RetryDecision = None
    """Decision applied to every failure channel of this call"""

    on_status: dict[Selector, RetryDecision] = field(default_factory=dict)
    on_network_error: RetryDecision = None
    on_parsing_error: RetryDecision = None

    respect_retry_after: Optional[bool] = None
    max_delay_seconds: Optional[float] = None
    max_overall_time_seconds: Optional[float] = None


# Per-call `retry=` value: a bare decision or a RetryOverride
RetryCall = Union[RetryDecision, RetryOverride]


@dataclass
class RetryPolicy:
    """Effective policy for one call: merged knobs, separate selector maps"""

    local_status: Mapping[Selector, RetryDecision]
    global_status: Mapping[Selector, RetryDecision]
    call_decision: RetryDecision = None
    local_network_error: RetryDecision = None
    global_network_error: RetryDecision = None
    local_parsing_error: RetryDecision = None
    global_parsing_error: RetryDecision = None
    max_delay_seconds: float = 30.0
    backoff_base_seconds: float = 0.25
    respect_retry_after: bool = True
    max_overall_time_seconds: Optional[float] = None
    methods: frozenset[str] = frozenset({"GET", "OPTIONS", "HEAD"})


@dataclass
class AttemptContext:
    """Attempt counter and start time of one logical call"""

    attempt: int = 0
    """0-based; incremented only when a retry is actually taken"""

    started_at: float = 0.0
    """time.monotonic() at the start of the call"""


@dataclass(frozen=True)
class RetryVerdict:
    """Result of a retry decision"""

    allow: bool
    explicit_delay: Optional[float] = None


class OutcomeKind(str, Enum):
    """Classification of one attempt"""
    SUCCESS = "success"
    NETWORK_FAILURE = "network_failure"
    PARSE_FAILURE = "parse_failure"
    STATUS_FAILURE = "status_failure"


@dataclass
class CallOutcome:
    """Outcome of one attempt, driving handler selection and retry evaluation"""

    kind: OutcomeKind
    status: Optional[int] = None
    response: Any = None
    data: Any = None
    error: Optional[BaseException] = None
    cancelled_by_caller: bool = False
    """True when a caller-supplied cancellation aborted the attempt"""

    @property
    def is_failure(self) -> bool:
        return self.kind is not OutcomeKind.SUCCESS

"""
Error types for fetch_call.
"""
from typing import Any, Literal, Optional


class CallError(Exception):
    """
    Raised when a call fails and errors are not suppressed.

    Carries whatever context applies to the failure: the status and parsed
    data for a non-success status, the response for parse failures, and the
    underlying exception (`cause`, also chained as `__cause__`) for network
    and parse failures.
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        data: Any = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
        response: Any = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.data = data
        self.url = url
        self.method = method
        self.response = response
        self.cause = cause

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"CallError({self.message!r}, status={self.status!r}, "
            f"method={self.method!r}, url={self.url!r})"
        )


AbortReason = Literal["timeout", "signal"]


class RequestAborted(Exception):
    """An attempt was aborted by its timeout or by the caller's signal."""

    def __init__(self, reason: AbortReason, timeout: Optional[float] = None) -> None:
        if reason == "timeout":
            message = f"Request aborted: timed out after {timeout}s"
        else:
            message = "Request aborted by signal"
        super().__init__(message)
        self.reason = reason
        self.timeout = timeout

    @property
    def by_caller(self) -> bool:
        return self.reason == "signal"

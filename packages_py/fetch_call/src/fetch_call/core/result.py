"""
CallResult construction and field filtering.
"""
from collections.abc import Mapping
from typing import Any, List, Optional

import httpx

from ..types import CallResult, HttpMethod, ReturnField

NETWORK_ERROR_MESSAGE = "Network/Abort error"
PARSE_ERROR_MESSAGE = "Response parse error"


def filter_fields(
    result: CallResult,
    call_fields: Optional[List[ReturnField]] = None,
    config_fields: Optional[List[ReturnField]] = None,
) -> CallResult:
    """
    Keep only the selected result fields.

    Per-call fields win over config fields; with neither, the result is
    returned unchanged.
    """
    fields = call_fields or config_fields
    if not fields:
        return result
    return {key: value for key, value in result.items() if key in fields}  # type: ignore[return-value]


def status_failure_message(status: int, status_text: Optional[str]) -> str:
    """Message for a terminal non-success status."""
    return f"Request failed with {status}{' ' + status_text if status_text else ''}"


def error_code(data: Any) -> Optional[str]:
    """The stringified `code` of a parsed error body, if it carries one."""
    if isinstance(data, Mapping) and "code" in data:
        return str(data["code"])
    return None


def _redirected(response: Any) -> bool:
    return bool(getattr(response, "history", None))


def response_result(
    response: Any,
    content: Any,
    url: str,
    method: HttpMethod,
) -> CallResult:
    """Result for a call that produced a response."""
    status = response.status_code
    return CallResult(
        content=content,
        status=status,
        status_text=response.reason_phrase or "",
        headers=response.headers,
        url=url,
        ok=200 <= status < 300,
        redirected=_redirected(response),
        method=method,
    )


def network_failure_result(url: str, method: HttpMethod, error: BaseException) -> CallResult:
    """Suppressed result for a network or abort failure."""
    return CallResult(
        content=None,
        status=0,
        status_text=NETWORK_ERROR_MESSAGE,
        headers=httpx.Headers(),
        url=url,
        ok=False,
        redirected=False,
        method=method,
        error={"message": NETWORK_ERROR_MESSAGE, "cause": error},
    )


def parse_failure_result(
    response: Any,
    url: str,
    method: HttpMethod,
    error: BaseException,
) -> CallResult:
    """Suppressed result for a body that could not be parsed."""
    result = response_result(response, None, url, method)
    result["ok"] = False
    result["status_text"] = result["status_text"] or PARSE_ERROR_MESSAGE
    result["error"] = {"message": PARSE_ERROR_MESSAGE, "cause": error}
    return result


def status_failure_result(
    response: Any,
    content: Any,
    data: Any,
    url: str,
    method: HttpMethod,
) -> CallResult:
    """Suppressed result for a terminal non-success status."""
    result = response_result(response, content, url, method)
    result["ok"] = False
    result["error"] = {
        "message": status_failure_message(response.status_code, response.reason_phrase),
        "cause": error_code(data),
    }
    return result

"""
HTTP status selectors: code <-> name table, range wildcards and lookup tiers.

A status outcome is looked up through a fixed list of selectors, most
specific first:

    404 -> (404, "404", "not_found") then "4xx"

Handler maps and retry maps both key on these selectors.
"""
from typing import Any, Callable, Mapping, Optional


NETWORK_ERROR = "network-error"
PARSING_ERROR = "parsing-error"

SPECIAL_EVENTS = (NETWORK_ERROR, PARSING_ERROR)

WILDCARDS = ("1xx", "2xx", "3xx", "4xx", "5xx")


STATUS_CODE_BY_NAME: dict[str, int] = {
    "continue": 100,
    "switching_protocols": 101,
    "processing": 102,
    "early_hints": 103,

    "ok": 200,
    "created": 201,
    "accepted": 202,
    "non_authoritative_information": 203,
    "no_content": 204,
    "reset_content": 205,
    "partial_content": 206,
    "multi_status": 207,
    "already_reported": 208,
    "transformation_applied": 214,
    "im_used": 226,

    "multiple_choices": 300,
    "moved_permanently": 301,
    "found": 302,
    "see_other": 303,
    "not_modified": 304,
    "use_proxy": 305,
    "temporary_redirect": 307,
    "permanent_redirect": 308,

    "bad_request": 400,
    "unauthorized": 401,
    "payment_required": 402,
    "forbidden": 403,
    "not_found": 404,
    "method_not_allowed": 405,
    "not_acceptable": 406,
    "proxy_authentication_required": 407,
    "request_timeout": 408,
    "conflict": 409,
    "gone": 410,
    "length_required": 411,
    "precondition_failed": 412,
    "payload_too_large": 413,
    "uri_too_long": 414,
    "unsupported_media_type": 415,
    "range_not_satisfiable": 416,
    "expectation_failed": 417,
    "im_a_teapot": 418,
    "misdirected_request": 421,
    "unprocessable_entity": 422,
    "locked": 423,
    "failed_dependency": 424,
    "too_early": 425,
    "upgrade_required": 426,
    "precondition_required": 428,
    "too_many_requests": 429,
    "request_header_fields_too_large": 431,
    "no_response": 444,
    "blocked_by_windows_parental_controls": 450,
    "unavailable_for_legal_reasons": 451,
    "ssl_certificate_error": 495,
    "ssl_certificate_required": 496,
    "http_request_sent_to_https_port": 497,
    "token_expired_invalid": 498,
    "client_closed_request": 499,

    "internal_server_error": 500,
    "not_implemented": 501,
    "bad_gateway": 502,
    "service_unavailable": 503,
    "gateway_timeout": 504,
    "http_version_not_supported": 505,
    "variant_also_negotiates": 506,
    "insufficient_storage": 507,
    "loop_detected": 508,
    "bandwidth_limit_exceeded": 509,
    "not_extended": 510,
    "network_authentication_required": 511,
    "web_server_is_down": 521,
    "connection_timed_out": 522,
    "origin_is_unreachable": 523,
    "ssl_handshake_failed": 525,
    "site_frozen": 530,
    "network_connect_timeout_error": 599,
}

STATUS_NAME_BY_CODE: dict[int, str] = {
    code: name for name, code in STATUS_CODE_BY_NAME.items()
}


def code_to_name(status: int) -> Optional[str]:
    """Symbolic name for a status code, or None if the code is not tabled."""
    return STATUS_NAME_BY_CODE.get(status)


def status_to_wildcard(status: int) -> str:
    """Range wildcard for a status code: 503 -> "5xx"."""
    return f"{status // 100}xx"


def specific_selectors(status: int) -> list[Any]:
    """Code and name selectors for a status, most specific first."""
    selectors: list[Any] = [status, str(status)]
    name = code_to_name(status)
    if name:
        selectors.append(name)
    return selectors


def lookup_first(
    mapping: Optional[Mapping[Any, Any]],
    selectors: list[Any],
    accept: Callable[[Any], bool] = lambda value: value is not None,
) -> Any:
    """Return the first accepted value under any of the selectors, else None."""
    if not mapping:
        return None
    for selector in selectors:
        value = mapping.get(selector)
        if accept(value):
            return value
    return None


def lookup_status(
    status: int,
    local: Optional[Mapping[Any, Any]],
    global_: Optional[Mapping[Any, Any]],
    accept: Callable[[Any], bool] = lambda value: value is not None,
) -> Any:
    """
    Look a status up through the four selector tiers.

    Order: local code/name, global code/name, local wildcard, global
    wildcard. The first accepted entry wins.

    Args:
        status: HTTP status code
        local: Per-call selector map
        global_: Client-level selector map
        accept: Predicate deciding whether an entry counts as defined

    Returns:
        The matching entry, or None
    """
    specific = specific_selectors(status)
    wildcard = [status_to_wildcard(status)]

    tiers = (
        (local, specific),
        (global_, specific),
        (local, wildcard),
        (global_, wildcard),
    )
    for mapping, selectors in tiers:
        value = lookup_first(mapping, selectors, accept)
        if accept(value):
            return value
    return None

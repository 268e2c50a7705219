"""
Configuration for fetch_call.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
import logging
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import urlparse

from fetch_call_retry import (
    DEFAULT_RETRY_CONFIG,
    RetryCall,
    RetryConfig,
    SPECIAL_EVENTS,
    STATUS_CODE_BY_NAME,
    WILDCARDS,
)

from .types import (
    CredentialsMode,
    Handler,
    HttpMethod,
    PARSE_TARGETS,
    ParseAs,
    ProgressAPI,
    ProgressCallback,
    RETURN_FIELDS,
    ReturnField,
    Token,
    Transport,
)

logger = logging.getLogger("fetch_call.config")


DEFAULT_METHOD: HttpMethod = "GET"


def _is_known_selector(selector: Any) -> bool:
    if isinstance(selector, bool):
        return False
    if isinstance(selector, int):
        return 100 <= selector <= 599
    if isinstance(selector, str):
        return (
            selector.isdigit()
            or selector in STATUS_CODE_BY_NAME
            or selector in WILDCARDS
            or selector in SPECIAL_EVENTS
        )
    return False


@dataclass
class HandlerMap:
    """
    Event handlers keyed by selector, with one shared `once` flag.

    Selectors: status code (404), status name ("not_found"), wildcard
    ("4xx"), or a special event ("network-error", "parsing-error").
    With `once=True` a handler fires only on the terminal attempt of a call;
    otherwise it fires on every attempt, including ones that get retried.
    """

    handlers: Dict[Union[int, str], Handler] = field(default_factory=dict)
    once: Optional[bool] = None

    def __post_init__(self) -> None:
        for selector, handler in self.handlers.items():
            if not callable(handler):
                raise ValueError(f"Handler for {selector!r} is not callable")
            if not _is_known_selector(selector):
                logger.warning(f"HandlerMap: selector {selector!r} will never match")

    def get(self, selector: Any) -> Optional[Handler]:
        return self.handlers.get(selector)

    def __bool__(self) -> bool:
        return bool(self.handlers)

    @classmethod
    def coerce(cls, value: Union["HandlerMap", Mapping, None]) -> "HandlerMap":
        """Build a HandlerMap from a plain dict; an optional "once" key sets the flag."""
        if value is None:
            return cls()
        if isinstance(value, HandlerMap):
            return value
        if isinstance(value, Mapping):
            handlers = {k: v for k, v in value.items() if k != "once"}
            once = value.get("once")
            return cls(handlers=handlers, once=None if once is None else bool(once))
        raise ValueError(f"Invalid handler map: {value!r}")


HandlersInput = Union[HandlerMap, Mapping, None]


@dataclass
class CallConfig:
    """Client configuration; applies to every call unless overridden."""

    base_url: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    transport: Optional[Transport] = None
    httpx_client: Optional[Any] = None
    timeout: Optional[float] = None
    default_origin: Optional[str] = None
    progress: Optional[ProgressAPI] = None
    suppress_error: bool = False
    return_fields: Optional[List[ReturnField]] = None
    credentials: Optional[CredentialsMode] = None
    token: Optional[Token] = None
    on: HandlersInput = None
    retry: Optional[RetryConfig] = None


@dataclass
class RequestOptions:
    """Options for an individual call; may override parts of CallConfig."""

    method: HttpMethod = DEFAULT_METHOD
    headers: Optional[Dict[str, str]] = None
    params: Optional[Dict[str, Any]] = None
    json: Any = None
    body: Any = None
    parse_as: Optional[ParseAs] = None
    signal: Optional[Any] = None
    timeout: Optional[float] = None
    map_response: Optional[Callable[[Any, Any], Any]] = None
    on_progress: Optional[ProgressCallback] = None
    use_progress_api: bool = False
    suppress_error: Optional[bool] = None
    return_fields: Optional[List[ReturnField]] = None
    credentials: Optional[CredentialsMode] = None
    debug: bool = False
    token: Optional[Token] = None
    on: HandlersInput = None
    retry: RetryCall = None

    def __post_init__(self) -> None:
        self.method = self.method.upper()  # type: ignore[assignment]
        if self.parse_as is not None and self.parse_as not in PARSE_TARGETS:
            raise ValueError(
                f"Invalid parse_as: {self.parse_as!r}. Must be one of: {list(PARSE_TARGETS)}"
            )
        validate_return_fields(self.return_fields)


@dataclass
class ResolvedConfig:
    """Resolved client configuration with defaults applied."""

    base_url: Optional[str]
    headers: Dict[str, str]
    timeout: Optional[float]
    default_origin: Optional[str]
    progress: Optional[ProgressAPI]
    suppress_error: bool
    return_fields: Optional[List[ReturnField]]
    credentials: Optional[CredentialsMode]
    token: Optional[Token]
    on: HandlerMap
    retry: RetryConfig


def _validate_origin(name: str, value: Optional[str]) -> None:
    if value is None:
        return
    parsed = urlparse(str(value))
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Invalid {name}: {value}")


def validate_return_fields(fields: Optional[List[str]]) -> None:
    """Validate a return_fields selection."""
    if not fields:
        return
    unknown = [f for f in fields if f not in RETURN_FIELDS]
    if unknown:
        raise ValueError(f"Invalid return_fields: {unknown}. Must be among: {list(RETURN_FIELDS)}")


def normalize_timeout(timeout: Optional[float]) -> Optional[float]:
    """Timeouts <= 0 mean "no timeout"."""
    if timeout is None or timeout <= 0:
        return None
    return float(timeout)


def validate_config(config: CallConfig) -> None:
    """Validate client configuration."""
    _validate_origin("base_url", config.base_url)
    _validate_origin("default_origin", config.default_origin)
    validate_return_fields(config.return_fields)


def resolve_config(config: Optional[CallConfig] = None) -> ResolvedConfig:
    """Resolve client configuration with defaults."""
    config = config or CallConfig()
    validate_config(config)

    return ResolvedConfig(
        base_url=str(config.base_url) if config.base_url is not None else None,
        headers=dict(config.headers or {}),
        timeout=normalize_timeout(config.timeout),
        default_origin=str(config.default_origin) if config.default_origin is not None else None,
        progress=config.progress,
        suppress_error=bool(config.suppress_error),
        return_fields=list(config.return_fields) if config.return_fields else None,
        credentials=config.credentials,
        token=config.token,
        on=HandlerMap.coerce(config.on),
        retry=config.retry or DEFAULT_RETRY_CONFIG,
    )

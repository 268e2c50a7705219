"""
Type definitions for fetch_call.
"""
from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Literal,
    Optional,
    Protocol,
    Tuple,
    TypedDict,
    Union,
)

import httpx


# HTTP methods
HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

# Target representations for the response body
ParseAs = Literal["response", "json", "text", "blob", "bytes", "form", "stream"]

PARSE_TARGETS = ("response", "json", "text", "blob", "bytes", "form", "stream")

# Targets handed to the caller untouched; no progress reporting
PASSTHROUGH_TARGETS = ("response", "stream")

# Fields a CallResult may carry, see `return_fields`
RETURN_FIELDS = (
    "content",
    "status",
    "status_text",
    "headers",
    "url",
    "ok",
    "redirected",
    "method",
    "error",
)

ReturnField = Literal[
    "content",
    "status",
    "status_text",
    "headers",
    "url",
    "ok",
    "redirected",
    "method",
    "error",
]

# Credential source: fixed value or (possibly async) provider
Token = Union[str, Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]]

# Credentials mode passed through to the transport
CredentialsMode = Literal["omit", "same-origin", "include"]

# Request body accepted by the transport
RequestBody = Union[str, bytes, Any]


@dataclass
class ProgressInfo:
    """Progress of one body read."""

    loaded: int
    total: Optional[int] = None
    percent: Optional[float] = None


class ProgressAPI(Protocol):
    """
    Global progress channel (e.g. a static loading bar).

    All hooks are optional; `set` receives 0..1, or None when the total
    size is unknown.
    """

    def start(self) -> None:
        ...

    def set(self, progress: Optional[float]) -> None:
        ...

    def done(self) -> None:
        ...


ProgressCallback = Callable[[ProgressInfo], None]


class CallErrorInfo(TypedDict, total=False):
    """Error details folded into a suppressed CallResult."""

    message: str
    cause: Any


class CallResult(TypedDict, total=False):
    """Result of a call; keys are limited by `return_fields`."""

    content: Any
    status: int
    status_text: str
    headers: httpx.Headers
    url: str
    ok: bool
    redirected: bool
    method: HttpMethod
    error: CallErrorInfo


@dataclass
class Blob:
    """Binary body together with its declared content type."""

    data: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)

    def text(self, encoding: str = "utf-8") -> str:
        return self.data.decode(encoding)


@dataclass
class FormFile:
    """File part of a multipart form body."""

    filename: Optional[str]
    data: bytes
    content_type: Optional[str] = None


FormValue = Union[str, FormFile]


@dataclass
class FormData:
    """Ordered, multi-valued form fields."""

    items: List[Tuple[str, FormValue]] = field(default_factory=list)

    def get(self, name: str) -> Optional[FormValue]:
        for key, value in self.items:
            if key == name:
                return value
        return None

    def get_all(self, name: str) -> List[FormValue]:
        return [value for key, value in self.items if key == name]

    def keys(self) -> List[str]:
        seen: Dict[str, None] = {}
        for key, _ in self.items:
            seen.setdefault(key, None)
        return list(seen)

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class StatusContext:
    """Context passed to status handlers."""

    status: int
    url: str
    method: HttpMethod
    response: Any
    data: Any
    headers: Any


@dataclass
class NetworkErrorContext:
    """Context passed to the "network-error" handler."""

    url: str
    method: HttpMethod
    error: BaseException


@dataclass
class ParseErrorContext:
    """Context passed to the "parsing-error" handler."""

    url: str
    method: HttpMethod
    response: Any
    error: BaseException


HandlerContext = Union[StatusContext, NetworkErrorContext, ParseErrorContext]

Handler = Callable[[Any], Union[None, Awaitable[None]]]


@dataclass
class TransportRequest:
    """Everything the transport needs for one attempt."""

    method: HttpMethod
    headers: httpx.Headers
    body: Optional[RequestBody] = None
    credentials: Optional[CredentialsMode] = None


class Transport(Protocol):
    """HTTP fetch primitive: one network operation per call."""

    async def __call__(self, url: str, request: TransportRequest) -> httpx.Response:
        ...

"""
Request orchestration over an HTTP fetch primitive.

Adds retry decisions across network, parse and status failures, layered
event handlers, and an incremental body reader with progress reporting on
top of httpx.
"""
from .types import (
    HttpMethod,
    ParseAs,
    ReturnField,
    Token,
    CredentialsMode,
    ProgressInfo,
    ProgressAPI,
    CallErrorInfo,
    CallResult,
    Blob,
    FormFile,
    FormData,
    StatusContext,
    NetworkErrorContext,
    ParseErrorContext,
    TransportRequest,
    Transport,
)
from .errors import CallError, RequestAborted
from .config import (
    DEFAULT_METHOD,
    HandlerMap,
    CallConfig,
    RequestOptions,
    ResolvedConfig,
    resolve_config,
)
from .auth.token_store import TokenStore
from .adapters.httpx_transport import HttpxTransport
from .handlers.resolver import (
    HandlerResolver,
    resolve_status_handler,
    resolve_special_handler,
    should_fire,
    invoke_handler,
)
from .streaming.body_reader import read_body, read_all
from .streaming.form_data import parse_form_data
from .core.cancellation import AttemptScope
from .core.request_builder import build_url, build_headers, build_body, is_replayable_body
from .core.result import filter_fields
from .core.orchestrator import RequestOrchestrator
from .core.base_client import CallClient
from .factory import create_call

__all__ = [
    # Types
    "HttpMethod",
    "ParseAs",
    "ReturnField",
    "Token",
    "CredentialsMode",
    "ProgressInfo",
    "ProgressAPI",
    "CallErrorInfo",
    "CallResult",
    "Blob",
    "FormFile",
    "FormData",
    "StatusContext",
    "NetworkErrorContext",
    "ParseErrorContext",
    "TransportRequest",
    "Transport",
    # Errors
    "CallError",
    "RequestAborted",
    # Config
    "DEFAULT_METHOD",
    "HandlerMap",
    "CallConfig",
    "RequestOptions",
    "ResolvedConfig",
    "resolve_config",
    # Auth
    "TokenStore",
    # Transport
    "HttpxTransport",
    # Handlers
    "HandlerResolver",
    "resolve_status_handler",
    "resolve_special_handler",
    "should_fire",
    "invoke_handler",
    # Streaming
    "read_body",
    "read_all",
    "parse_form_data",
    # Core
    "AttemptScope",
    "build_url",
    "build_headers",
    "build_body",
    "is_replayable_body",
    "filter_fields",
    "RequestOrchestrator",
    "CallClient",
    # Factory
    "create_call",
]

__version__ = "1.0.0"

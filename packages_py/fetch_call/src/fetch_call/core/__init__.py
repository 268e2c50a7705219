"""
Core modules for fetch_call.
"""
from .base_client import CallClient, resolve_transport
from .cancellation import AttemptScope
from .orchestrator import RequestOrchestrator, default_parse_target
from .request_builder import (
    build_url,
    build_headers,
    build_body,
    is_replayable_body,
    resolve_token,
    apply_token,
)
from .result import filter_fields

__all__ = [
    "CallClient",
    "resolve_transport",
    "AttemptScope",
    "RequestOrchestrator",
    "default_parse_target",
    "build_url",
    "build_headers",
    "build_body",
    "is_replayable_body",
    "resolve_token",
    "apply_token",
    "filter_fields",
]

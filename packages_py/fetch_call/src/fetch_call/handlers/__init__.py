"""
Event handler resolution for fetch_call.
"""
from .resolver import (
    HandlerResolver,
    resolve_status_handler,
    resolve_special_handler,
    effective_once,
    should_fire,
    invoke_handler,
)

__all__ = [
    "HandlerResolver",
    "resolve_status_handler",
    "resolve_special_handler",
    "effective_once",
    "should_fire",
    "invoke_handler",
]

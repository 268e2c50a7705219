"""
Streaming body reading for fetch_call.
"""
from .body_reader import (
    ProgressTracker,
    read_body,
    read_all,
)
from .form_data import parse_form_data

__all__ = [
    "ProgressTracker",
    "read_body",
    "read_all",
    "parse_form_data",
]

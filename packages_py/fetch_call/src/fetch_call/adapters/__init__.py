"""
Transport adapters for fetch_call.
"""
from .httpx_transport import HttpxTransport

__all__ = ["HttpxTransport"]

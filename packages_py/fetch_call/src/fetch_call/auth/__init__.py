"""
Credential handling for fetch_call.
"""
from .token_store import TokenStore

__all__ = [
    "TokenStore",
]

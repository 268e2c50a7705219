"""
Factory functions for creating call clients.
"""
from typing import Any, Optional

from .config import CallConfig
from .core.base_client import CallClient


def create_call(config: Optional[CallConfig] = None, **kwargs: Any) -> CallClient:
    """
    Create a call client.

    Args:
        config: Complete client configuration.
        **kwargs: CallConfig fields, used when no config is given.

    Returns:
        CallClient bound to the configuration.

    Example:
        call = create_call(
            base_url="https://api.example.com",
            retry=RetryConfig(on_status={"5xx": RetryAttempts(attempts=2)}),
            on={"unauthorized": handle_logout, "once": True},
        )
        result = await call.get("/me")
    """
    if config is not None and kwargs:
        raise ValueError("Pass either a CallConfig or keyword options, not both")
    return CallClient(config if config is not None else CallConfig(**kwargs))

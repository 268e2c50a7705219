"""
Cached credential for one client instance.
"""
import logging
from typing import Optional

logger = logging.getLogger("fetch_call.token_store")


def _mask_value(val: Optional[str]) -> str:
    """Mask sensitive value for logging, showing first 4 chars."""
    if not val:
        return "<empty>"
    if len(val) <= 4:
        return "*" * len(val)
    return val[:4] + "*" * (len(val) - 4)


class TokenStore:
    """
    Settable/gettable/clearable bearer token.

    Shared by every call of the owning client. Concurrent calls read it
    between suspension points, so a `set` or `clear` during an in-flight
    call takes effect for calls that resolve their token afterwards:
    last write wins, there is no per-call isolation.
    """

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = token

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: Optional[str] = None) -> None:
        logger.debug(f"TokenStore.set: token={_mask_value(token)}")
        self._token = token

    def clear(self) -> None:
        logger.debug("TokenStore.clear")
        self._token = None

    def __repr__(self) -> str:
        return f"TokenStore(token={_mask_value(self._token)!r})"

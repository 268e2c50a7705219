"""
Handler precedence and dispatch.
"""
import inspect
import logging
from typing import Any, Optional

from fetch_call_retry import SPECIAL_EVENTS, lookup_status

from ..config import HandlerMap
from ..types import Handler, HandlerContext

logger = logging.getLogger("fetch_call.handlers")


def resolve_status_handler(
    status: int,
    local: HandlerMap,
    global_: HandlerMap,
) -> Optional[Handler]:
    """
    Pick the handler for a status code.

    Precedence, most specific first:
    1. per-call code, then per-call name
    2. client code, then client name
    3. per-call wildcard (e.g. "4xx")
    4. client wildcard

    Returns:
        The handler, or None if nothing matches
    """
    return lookup_status(status, local.handlers, global_.handlers, accept=callable)


def resolve_special_handler(
    event: str,
    local: HandlerMap,
    global_: HandlerMap,
) -> Optional[Handler]:
    """Pick the handler for "network-error" or "parsing-error": per-call, then client."""
    if event not in SPECIAL_EVENTS:
        raise ValueError(f"Unknown event: {event!r}. Must be one of: {list(SPECIAL_EVENTS)}")
    handler = local.get(event)
    if callable(handler):
        return handler
    handler = global_.get(event)
    return handler if callable(handler) else None


def effective_once(local: HandlerMap, global_: HandlerMap) -> bool:
    """The per-call `once` flag wins over the client flag; default False."""
    if local.once is not None:
        return local.once
    if global_.once is not None:
        return global_.once
    return False


def should_fire(once: bool, will_retry: bool) -> bool:
    """With `once`, only the terminal attempt fires."""
    return not once or not will_retry


async def invoke_handler(handler: Handler, context: HandlerContext) -> None:
    """
    Call a handler, awaiting it if it is async.

    Errors raised by the handler are logged and never propagated.
    """
    try:
        result = handler(context)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception(f"Handler {getattr(handler, '__name__', handler)!r} raised; ignoring")


class HandlerResolver:
    """
    Handler lookup for one call, binding the per-call and client maps.

    Example:
        resolver = HandlerResolver(HandlerMap.coerce(opts.on), config.on)
        handler = resolver.for_status(503)
        await resolver.dispatch(handler, ctx, will_retry=True)
    """

    def __init__(self, local: HandlerMap, global_: HandlerMap) -> None:
        self._local = local
        self._global = global_
        self.once = effective_once(local, global_)

    def for_status(self, status: int) -> Optional[Handler]:
        return resolve_status_handler(status, self._local, self._global)

    def for_event(self, event: str) -> Optional[Handler]:
        return resolve_special_handler(event, self._local, self._global)

    async def dispatch(
        self,
        handler: Optional[Handler],
        context: Any,
        will_retry: bool = False,
    ) -> bool:
        """
        Fire `handler` if the firing policy allows it.

        Returns:
            Whether the handler was invoked
        """
        if handler is None or not should_fire(self.once, will_retry):
            return False
        await invoke_handler(handler, context)
        return True

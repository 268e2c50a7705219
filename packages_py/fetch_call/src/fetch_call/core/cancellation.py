"""
Per-attempt cancellation: an optional timeout OR-ed with a caller signal.
"""
import asyncio
import inspect
import logging
from typing import Any, Awaitable, Optional, TypeVar

from ..errors import RequestAborted

logger = logging.getLogger("fetch_call.cancellation")

T = TypeVar("T")


class AttemptScope:
    """
    Cancellation scope for one attempt.

    The timeout deadline is fixed when the scope is created, so the
    transport call and the body read of the same attempt share one budget.
    The signal is any object with `is_set()` and an awaitable `wait()`,
    typically an `asyncio.Event`. Whichever fires first cancels the awaited
    operation and raises RequestAborted; a pending wait on the other one is
    torn down.

    Example:
        scope = AttemptScope(timeout=5.0, signal=stop_event)
        response = await scope.run(transport(url, request))
    """

    def __init__(self, timeout: Optional[float] = None, signal: Optional[Any] = None) -> None:
        self._timeout = timeout if timeout and timeout > 0 else None
        self._signal = signal
        loop = asyncio.get_running_loop()
        self._deadline = loop.time() + self._timeout if self._timeout else None

    @property
    def signalled(self) -> bool:
        """Whether the caller's signal has fired."""
        return self._signal is not None and self._signal.is_set()

    def _remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return self._deadline - asyncio.get_running_loop().time()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await `awaitable` under this scope.

        Raises:
            RequestAborted: The signal fired or the deadline passed first
        """
        remaining = self._remaining()
        if self.signalled or (remaining is not None and remaining <= 0):
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise RequestAborted("signal" if self.signalled else "timeout", self._timeout)

        task = asyncio.ensure_future(awaitable)
        signal_task: Optional[asyncio.Future] = None
        waiters = {task}
        if self._signal is not None:
            signal_task = asyncio.ensure_future(self._signal.wait())
            waiters.add(signal_task)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            if signal_task is not None and not signal_task.done():
                signal_task.cancel()
            if not task.done():
                task.cancel()

        if task in done:
            return task.result()

        await self._drain(task)
        if signal_task is not None and signal_task in done:
            logger.debug("AttemptScope: aborted by signal")
            raise RequestAborted("signal")
        logger.debug(f"AttemptScope: timed out after {self._timeout}s")
        raise RequestAborted("timeout", self._timeout)

    @staticmethod
    async def _drain(task: "asyncio.Future[Any]") -> None:
        """Wait for a cancelled task to unwind; close a result it produced anyway."""
        await asyncio.wait({task})
        if task.cancelled():
            return
        if task.exception() is not None:
            logger.debug(f"AttemptScope: aborted operation raised {task.exception()!r}")
            return

        aclose = getattr(task.result(), "aclose", None)
        if not callable(aclose):
            return
        logger.debug("AttemptScope: closing result of aborted operation")
        try:
            await aclose()
        except Exception as err:
            logger.warning(f"AttemptScope: failed to close result of aborted operation: {err!r}")

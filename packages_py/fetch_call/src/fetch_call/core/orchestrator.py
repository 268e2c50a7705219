"""
Attempt loop: transport call, body parsing, handler dispatch, retry and finalization.
"""
import asyncio
import logging
import time
from typing import Any, Optional, Tuple

import httpx

from fetch_call_retry import (
    AttemptContext,
    CallOutcome,
    NETWORK_ERROR,
    OutcomeKind,
    PARSING_ERROR,
    RetryPolicy,
    async_sleep,
    compute_delay,
    decide,
    resolve_policy,
)

from .. import debug as debug_print
from ..auth.token_store import TokenStore
from ..config import HandlerMap, RequestOptions, ResolvedConfig, normalize_timeout
from ..errors import CallError, RequestAborted
from ..handlers.resolver import HandlerResolver
from ..streaming.body_reader import read_all, read_body
from ..types import (
    CallResult,
    NetworkErrorContext,
    ParseAs,
    ParseErrorContext,
    PASSTHROUGH_TARGETS,
    StatusContext,
    Transport,
    TransportRequest,
)
from .cancellation import AttemptScope
from .request_builder import (
    apply_token,
    build_body,
    build_headers,
    build_url,
    is_replayable_body,
)
from .result import (
    NETWORK_ERROR_MESSAGE,
    PARSE_ERROR_MESSAGE,
    error_code,
    filter_fields,
    network_failure_result,
    parse_failure_result,
    response_result,
    status_failure_message,
    status_failure_result,
)

logger = logging.getLogger("fetch_call.orchestrator")


def default_parse_target(response: Any) -> ParseAs:
    """JSON when the response declares application/json, text otherwise."""
    content_type = response.headers.get("content-type") or ""
    return "json" if "application/json" in content_type else "text"


async def close_response(response: Any) -> None:
    """Release the connection held by a streamed response."""
    close = getattr(response, "aclose", None)
    if not callable(close):
        return
    try:
        await close()
    except Exception as err:
        logger.warning(f"Failed to close response: {err!r}")


class _Call:
    """Per-call state captured once before the first attempt."""

    def __init__(
        self,
        url: str,
        options: RequestOptions,
        headers: httpx.Headers,
        body: Any,
        policy: RetryPolicy,
        resolver: HandlerResolver,
        timeout: Optional[float],
        suppress: bool,
    ) -> None:
        self.url = url
        self.options = options
        self.method = options.method
        self.headers = headers
        self.body = body
        self.body_replayable = is_replayable_body(body)
        self.policy = policy
        self.resolver = resolver
        self.timeout = timeout
        self.suppress = suppress
        self.wants_progress = options.on_progress is not None or options.use_progress_api


class RequestOrchestrator:
    """
    Runs one logical call as a sequence of attempts.

    Every attempt ends in one outcome: success, network failure (including
    timeouts and aborts), parse failure, or a non-success status. Failures
    resolve a handler and a retry verdict; a granted retry waits the computed
    delay and loops, anything else finalizes into a CallResult or a
    CallError.

    Example:
        orchestrator = RequestOrchestrator(resolved_config, transport, TokenStore())
        result = await orchestrator.execute("/users", RequestOptions(method="GET"))
    """

    def __init__(
        self,
        config: ResolvedConfig,
        transport: Transport,
        token_store: Optional[TokenStore] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._token_store = token_store if token_store is not None else TokenStore()

    async def _prepare(self, path: str, options: RequestOptions) -> _Call:
        config = self._config
        url = build_url(config.base_url, path, options.params, config.default_origin)
        headers = build_headers(config.headers, options.headers, has_json=options.json is not None)
        await apply_token(headers, options.token, self._token_store, config.token, options.debug)
        body = build_body(options.json, options.body)

        timeout = normalize_timeout(options.timeout) if options.timeout is not None else config.timeout
        suppress = options.suppress_error if options.suppress_error is not None else config.suppress_error

        return _Call(
            url=url,
            options=options,
            headers=headers,
            body=body,
            policy=resolve_policy(config.retry, options.retry),
            resolver=HandlerResolver(HandlerMap.coerce(options.on), config.on),
            timeout=timeout,
            suppress=suppress,
        )

    async def execute(self, path: str, options: Optional[RequestOptions] = None) -> CallResult:
        """
        Execute a call with retries.

        Args:
            path: Absolute URL, or a path relative to base_url/default_origin
            options: Per-call options

        Returns:
            The (field-filtered) CallResult

        Raises:
            CallError: The call failed terminally and errors are not suppressed
            ValueError: Relative path without base_url or default_origin
        """
        options = options or RequestOptions()
        call = await self._prepare(path, options)
        context = AttemptContext(attempt=0, started_at=time.monotonic())

        logger.debug(
            f"RequestOrchestrator.execute: {call.method} {call.url} "
            f"(timeout={call.timeout}, replayable={call.body_replayable})"
        )

        while True:
            now = time.monotonic()
            outcome, parse_as = await self._attempt(call, context)

            if outcome.kind is OutcomeKind.SUCCESS:
                return await self._succeed(call, outcome, parse_as)

            verdict = decide(
                outcome,
                call.policy,
                context,
                call.method,
                call.body_replayable,
                now=now,
            )
            await self._fire_failure_handler(call, outcome, will_retry=verdict.allow)

            if not verdict.allow:
                return await self._fail(call, outcome, parse_as)

            delay = compute_delay(
                context.attempt,
                call.policy.max_delay_seconds,
                call.policy.respect_retry_after,
                call.policy.backoff_base_seconds,
                response=outcome.response,
                explicit_delay=verdict.explicit_delay,
            )
            if outcome.response is not None:
                await close_response(outcome.response)

            logger.debug(
                f"RequestOrchestrator.execute: {outcome.kind.value} on attempt "
                f"{context.attempt}, retrying in {delay:.3f}s"
            )
            if delay > 0:
                await self._wait(delay, options.signal)
            context.attempt += 1

    async def _attempt(self, call: _Call, context: AttemptContext) -> Tuple[CallOutcome, Optional[ParseAs]]:
        """Run one attempt and classify its outcome."""
        options = call.options
        scope = AttemptScope(call.timeout, options.signal)
        request = TransportRequest(
            method=call.method,
            headers=httpx.Headers(call.headers),
            body=call.body,
            credentials=options.credentials or self._config.credentials,
        )

        if options.debug:
            debug_print.print_request(
                call.method, call.url, request.headers, options.json, context.attempt
            )

        try:
            response = await scope.run(self._transport(call.url, request))
        except Exception as err:
            logger.debug(f"RequestOrchestrator: network failure on attempt {context.attempt}: {err!r}")
            if options.debug:
                debug_print.print_failure(call.url, NETWORK_ERROR_MESSAGE, err)
            return self._network_outcome(err), None

        parse_as = options.parse_as or default_parse_target(response)
        try:
            if call.wants_progress and parse_as not in PASSTHROUGH_TARGETS:
                data = await scope.run(
                    read_body(
                        response,
                        parse_as,
                        on_progress=options.on_progress,
                        use_progress_api=options.use_progress_api,
                        progress=self._config.progress,
                    )
                )
            else:
                data = await scope.run(read_all(response, parse_as))
        except RequestAborted as err:
            logger.debug(f"RequestOrchestrator: body read aborted on attempt {context.attempt}: {err}")
            await close_response(response)
            return self._network_outcome(err), parse_as
        except Exception as err:
            logger.debug(f"RequestOrchestrator: parse failure on attempt {context.attempt}: {err!r}")
            if options.debug:
                debug_print.print_failure(call.url, PARSE_ERROR_MESSAGE, err)
            return (
                CallOutcome(
                    kind=OutcomeKind.PARSE_FAILURE,
                    status=response.status_code,
                    response=response,
                    error=err,
                ),
                parse_as,
            )

        if options.debug:
            debug_print.print_response(call.url, response, data)

        status = response.status_code
        kind = OutcomeKind.SUCCESS if 200 <= status < 300 else OutcomeKind.STATUS_FAILURE
        return CallOutcome(kind=kind, status=status, response=response, data=data), parse_as

    @staticmethod
    def _network_outcome(err: BaseException) -> CallOutcome:
        return CallOutcome(
            kind=OutcomeKind.NETWORK_FAILURE,
            error=err,
            cancelled_by_caller=isinstance(err, RequestAborted) and err.by_caller,
        )

    def _status_context(self, call: _Call, outcome: CallOutcome) -> StatusContext:
        response = outcome.response
        return StatusContext(
            status=response.status_code,
            url=call.url,
            method=call.method,
            response=response,
            data=outcome.data,
            headers=response.headers,
        )

    async def _fire_failure_handler(self, call: _Call, outcome: CallOutcome, will_retry: bool) -> None:
        resolver = call.resolver
        if outcome.kind is OutcomeKind.NETWORK_FAILURE:
            handler = resolver.for_event(NETWORK_ERROR)
            context: Any = NetworkErrorContext(url=call.url, method=call.method, error=outcome.error)
        elif outcome.kind is OutcomeKind.PARSE_FAILURE:
            handler = resolver.for_event(PARSING_ERROR)
            context = ParseErrorContext(
                url=call.url, method=call.method, response=outcome.response, error=outcome.error
            )
        else:
            handler = resolver.for_status(outcome.status)
            context = self._status_context(call, outcome)
        await resolver.dispatch(handler, context, will_retry=will_retry)

    def _map(self, call: _Call, outcome: CallOutcome) -> Any:
        map_response = call.options.map_response
        if map_response is None:
            return outcome.data
        return map_response(outcome.data, outcome.response)

    def _filter(self, call: _Call, result: CallResult) -> CallResult:
        return filter_fields(result, call.options.return_fields, self._config.return_fields)

    async def _succeed(self, call: _Call, outcome: CallOutcome, parse_as: Optional[ParseAs]) -> CallResult:
        response = outcome.response
        # success is always terminal, so `once` never holds the handler back
        await call.resolver.dispatch(
            call.resolver.for_status(outcome.status),
            self._status_context(call, outcome),
            will_retry=False,
        )
        if parse_as not in PASSTHROUGH_TARGETS:
            await close_response(response)

        content = self._map(call, outcome)
        return self._filter(call, response_result(response, content, call.url, call.method))

    async def _fail(self, call: _Call, outcome: CallOutcome, parse_as: Optional[ParseAs]) -> CallResult:
        """Finalize a failure that will not be retried."""
        response = outcome.response
        if response is not None and parse_as not in PASSTHROUGH_TARGETS:
            await close_response(response)

        logger.debug(
            f"RequestOrchestrator: {call.method} {call.url} failed terminally "
            f"({outcome.kind.value}, status={outcome.status})"
        )

        if outcome.kind is OutcomeKind.NETWORK_FAILURE:
            if call.suppress:
                return self._filter(call, network_failure_result(call.url, call.method, outcome.error))
            raise CallError(
                NETWORK_ERROR_MESSAGE,
                url=call.url,
                method=call.method,
                cause=outcome.error,
            ) from outcome.error

        if outcome.kind is OutcomeKind.PARSE_FAILURE:
            if call.suppress:
                return self._filter(
                    call, parse_failure_result(response, call.url, call.method, outcome.error)
                )
            raise CallError(
                PARSE_ERROR_MESSAGE,
                status=outcome.status,
                url=call.url,
                method=call.method,
                response=response,
                cause=outcome.error,
            ) from outcome.error

        if call.suppress:
            content = self._map(call, outcome)
            return self._filter(
                call, status_failure_result(response, content, outcome.data, call.url, call.method)
            )
        raise CallError(
            status_failure_message(response.status_code, response.reason_phrase),
            status=response.status_code,
            code=error_code(outcome.data),
            data=outcome.data,
            url=call.url,
            method=call.method,
            response=response,
        )

    @staticmethod
    async def _wait(delay: float, signal: Optional[Any]) -> None:
        """Sleep between attempts; a caller signal cuts the wait short."""
        if signal is None:
            await async_sleep(delay)
            return
        try:
            await asyncio.wait_for(signal.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

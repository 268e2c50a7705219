"""
Incremental response body reader with progress reporting.
"""
import codecs
import json
import logging
from typing import Any, Optional

from ..types import (
    Blob,
    PASSTHROUGH_TARGETS,
    ParseAs,
    ProgressAPI,
    ProgressCallback,
    ProgressInfo,
)
from .form_data import parse_form_data

logger = logging.getLogger("fetch_call.body_reader")

BINARY_TARGETS = ("bytes", "blob", "form")


def _content_type(response: Any) -> Optional[str]:
    return response.headers.get("content-type")


def _content_length(response: Any) -> Optional[int]:
    value = response.headers.get("content-length")
    if value is None:
        return None
    value = value.strip()
    return int(value) if value.isdigit() else None


def _text_encoding(response: Any) -> str:
    encoding = getattr(response, "charset_encoding", None) or "utf-8"
    try:
        codecs.lookup(encoding)
    except LookupError:
        logger.warning(f"Unknown response charset {encoding!r}; decoding as utf-8")
        return "utf-8"
    return encoding


def _has_incremental_body(response: Any) -> bool:
    return callable(getattr(response, "aiter_bytes", None))


def _decode_json(text: str) -> Any:
    return json.loads(text) if text else None


def _progress_hook(channel: Optional[ProgressAPI], name: str, *args: Any) -> None:
    """Call an optional hook of the global progress channel; errors are logged."""
    hook = getattr(channel, name, None) if channel is not None else None
    if not callable(hook):
        return
    try:
        hook(*args)
    except Exception:
        logger.exception(f"Progress channel hook {name!r} raised; ignoring")


class ProgressTracker:
    """Counts bytes and forwards progress to the per-call callback and the channel."""

    def __init__(
        self,
        total: Optional[int],
        on_progress: Optional[ProgressCallback] = None,
        channel: Optional[ProgressAPI] = None,
    ) -> None:
        self.total = total
        self.loaded = 0
        self._on_progress = on_progress
        self._channel = channel

    def advance(self, size: int) -> ProgressInfo:
        self.loaded += size
        percent = min(1.0, self.loaded / self.total) if self.total else None
        info = ProgressInfo(loaded=self.loaded, total=self.total, percent=percent)

        if self._on_progress is not None:
            try:
                self._on_progress(info)
            except Exception:
                logger.exception("on_progress callback raised; ignoring")
        if self._channel is not None:
            _progress_hook(self._channel, "set", percent)
        return info


async def read_all(response: Any, parse_as: Optional[ParseAs]) -> Any:
    """
    Read the whole body at once into the target representation.

    "response" returns the response itself and "stream" its byte iterator;
    neither touches the body.
    """
    if parse_as == "response":
        return response
    if parse_as == "stream":
        return response.aiter_bytes()

    await response.aread()

    if parse_as == "json":
        return _decode_json(response.text)
    if parse_as == "bytes":
        return response.content
    if parse_as == "blob":
        return Blob(data=response.content, content_type=_content_type(response))
    if parse_as == "form":
        return parse_form_data(response.content, _content_type(response))
    return response.text


async def read_body(
    response: Any,
    parse_as: Optional[ParseAs],
    on_progress: Optional[ProgressCallback] = None,
    use_progress_api: bool = False,
    progress: Optional[ProgressAPI] = None,
) -> Any:
    """
    Read the body chunk by chunk, reporting progress, into the target representation.

    Each chunk advances `loaded`; `percent` is loaded/total when the response
    declares a Content-Length, else None. With `use_progress_api` the global
    channel gets `start()`, `set(None)` right away when the length is
    unknown, `set(percent)` per chunk, and always exactly one `done()`, even
    when decoding fails.

    Text and JSON are decoded incrementally so multi-byte characters split
    across chunks survive; JSON is parsed once the stream has ended.

    Args:
        response: httpx.Response (or compatible) opened for streaming.
        parse_as: Target representation; "text" when None.
        on_progress: Per-call progress callback.
        use_progress_api: Whether to drive the global progress channel.
        progress: The global progress channel.

    Returns:
        The decoded body.
    """
    if parse_as in PASSTHROUGH_TARGETS or not _has_incremental_body(response):
        return await read_all(response, parse_as)

    total = _content_length(response)
    channel = progress if use_progress_api else None
    tracker = ProgressTracker(total, on_progress, channel)

    if channel is not None:
        _progress_hook(channel, "start")
        if not total:
            _progress_hook(channel, "set", None)

    try:
        if parse_as in BINARY_TARGETS:
            chunks = []
            async for chunk in response.aiter_bytes():
                if chunk:
                    chunks.append(chunk)
                    tracker.advance(len(chunk))
            data = b"".join(chunks)
            logger.debug(f"read_body: {tracker.loaded} bytes as {parse_as}")

            if parse_as == "bytes":
                return data
            if parse_as == "blob":
                return Blob(data=data, content_type=_content_type(response))
            return parse_form_data(data, _content_type(response))

        decoder = codecs.getincrementaldecoder(_text_encoding(response))(errors="replace")
        parts = []
        async for chunk in response.aiter_bytes():
            if chunk:
                parts.append(decoder.decode(chunk))
                tracker.advance(len(chunk))
        parts.append(decoder.decode(b"", final=True))
        text = "".join(parts)
        logger.debug(f"read_body: {tracker.loaded} bytes as {parse_as or 'text'}")

        if parse_as == "json":
            return _decode_json(text)
        return text
    finally:
        if channel is not None:
            _progress_hook(channel, "done")

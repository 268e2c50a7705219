"""
Request builder utilities for fetch_call.
"""
from collections.abc import AsyncIterable, Iterator
import inspect
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse

import httpx

from ..auth.token_store import TokenStore
from ..types import Token

logger = logging.getLogger("fetch_call.request_builder")

JSON_CONTENT_TYPE = "application/json"


def is_absolute_url(value: str) -> bool:
    """True for URLs carrying both a scheme and a host."""
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc)


def _param_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _set_query_params(url: str, params: Optional[Mapping[str, Any]]) -> str:
    """Set params into the URL's query, replacing existing keys in place."""
    if not params:
        return url

    parsed = urlparse(url)
    pairs: List[Tuple[str, str]] = parse_qsl(parsed.query, keep_blank_values=True)

    for key, value in params.items():
        if value is None:
            continue
        text = _param_value(value)
        updated: List[Tuple[str, str]] = []
        replaced = False
        for existing_key, existing_value in pairs:
            if existing_key != key:
                updated.append((existing_key, existing_value))
            elif not replaced:
                updated.append((key, text))
                replaced = True
        if not replaced:
            updated.append((key, text))
        pairs = updated

    return parsed._replace(query=urlencode(pairs)).geturl()


def build_url(
    base_url: Optional[str],
    path: str,
    params: Optional[Mapping[str, Any]] = None,
    default_origin: Optional[str] = None,
) -> str:
    """
    Build the absolute request URL.

    Absolute paths are kept as they are. Relative paths are joined onto the
    base URL (or the default origin) with exactly one slash in between, so a
    base path is never dropped. `None` params are skipped.

    Raises:
        ValueError: Relative path without base_url or default_origin
    """
    if is_absolute_url(path):
        return _set_query_params(path, params)

    origin = base_url if base_url is not None else default_origin
    if not origin:
        raise ValueError(
            "Relative URL provided but no base_url or default_origin configured."
        )

    parsed = urlparse(str(origin))
    if not parsed.path.endswith("/"):
        parsed = parsed._replace(path=parsed.path + "/")
    base = parsed.geturl()

    clean_path = path[1:] if path.startswith("/") else path
    return _set_query_params(urljoin(base, clean_path), params)


def build_headers(
    config_headers: Optional[Mapping[str, str]] = None,
    headers: Optional[Mapping[str, str]] = None,
    has_json: bool = False,
) -> httpx.Headers:
    """Merge config and call headers; call headers win case-insensitively."""
    result = httpx.Headers(dict(config_headers or {}))

    for key, value in (headers or {}).items():
        result[key] = value

    if has_json and "content-type" not in result:
        result["content-type"] = JSON_CONTENT_TYPE

    return result


def build_body(json_data: Any = None, body: Any = None) -> Any:
    """Serialize `json_data` when given; otherwise pass `body` through."""
    if json_data is not None:
        return json.dumps(json_data)
    return body


def is_replayable_body(body: Any) -> bool:
    """One-shot stream bodies (iterators, async iterables, files) cannot be resent."""
    if body is None or isinstance(body, (str, bytes, bytearray, memoryview)):
        return True
    return not (isinstance(body, (AsyncIterable, Iterator)) or hasattr(body, "read"))


async def _call_token(token: Token) -> Optional[str]:
    if callable(token):
        value = token()
        if inspect.isawaitable(value):
            value = await value
        return value
    return token


async def resolve_token(
    call_token: Optional[Token],
    store: TokenStore,
    config_token: Optional[Token],
) -> Optional[str]:
    """
    Resolve the bearer token for one call.

    Order: per-call token, then the stored token, then the config token
    (resolving providers, sync or async).
    """
    if call_token is not None:
        return await _call_token(call_token)
    stored = store.get()
    if stored is not None:
        return stored
    if config_token is not None:
        return await _call_token(config_token)
    return None


async def apply_token(
    headers: httpx.Headers,
    call_token: Optional[Token],
    store: TokenStore,
    config_token: Optional[Token],
    debug: bool = False,
) -> None:
    """Set `authorization: Bearer <token>` unless an authorization header exists."""
    if "authorization" in headers:
        return

    try:
        token = await resolve_token(call_token, store, config_token)
    except Exception as err:
        logger.warning(f"apply_token: token resolution failed: {err!r}")
        if debug:
            logger.debug("apply_token: token resolution traceback", exc_info=True)
        return

    if token:
        headers["authorization"] = f"Bearer {token}"


def mask_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Mask credentials in a header mapping for safe logging."""
    masked: Dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in ("authorization", "x-api-key"):
            visible = value[:15]
            masked[key] = visible + "*" * max(0, len(value) - 15)
        else:
            masked[key] = value
    return masked

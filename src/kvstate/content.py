from __future__ import annotations

import codecs
from typing import Any, AsyncIterator, Optional, Tuple, TypeVar

import httpx
from pydantic import TypeAdapter


JSON_MEDIA_TYPE = "application/json"
JSON_CONTENT_TYPE = f"{JSON_MEDIA_TYPE}; charset=utf-8"

T = TypeVar("T")

_ANY_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def parse_content_type(header: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Split a Content-Type header into a lowercased (media_type, charset) pair."""
    if not header:
        return (None, None)
    parts = header.split(";")
    media_type = parts[0].strip().lower() or None
    charset: Optional[str] = None
    for param in parts[1:]:
        name, _, val = param.partition("=")
        if name.strip().lower() == "charset":
            charset = val.strip().strip('"').lower() or None
    return (media_type, charset)


def media_type_of(response: httpx.Response) -> Optional[str]:
    return parse_content_type(response.headers.get("content-type"))[0]


def is_json(response: httpx.Response) -> bool:
    return media_type_of(response) == JSON_MEDIA_TYPE


def _is_utf8(charset: Optional[str]) -> bool:
    # JSON without a declared charset is UTF-8
    if charset is None:
        return True
    try:
        return codecs.lookup(charset).name == "utf-8"
    except LookupError:
        return False


async def read_json(response: httpx.Response, adapter: TypeAdapter[T]) -> T:
    """
    Decode a JSON response body with `adapter`.

    - UTF-8 (or undeclared) bodies are collected from the byte stream and
      validated directly from bytes, without an intermediate text copy.
    - Any other declared charset is buffered, decoded to text, and validated
      from the text.

    Raises pydantic.ValidationError on malformed JSON and LookupError when the
    declared charset is unknown.
    """
    _, charset = parse_content_type(response.headers.get("content-type"))
    if _is_utf8(charset):
        buf = bytearray()
        async for chunk in response.aiter_bytes():
            buf.extend(chunk)
        return adapter.validate_json(bytes(buf))

    raw = await response.aread()
    return adapter.validate_json(raw.decode(charset))  # type: ignore[arg-type]


async def read_text(response: httpx.Response) -> str:
    """Read the whole body as text using the declared charset (UTF-8 fallback)."""
    await response.aread()
    return response.text


async def iter_json(obj: Any, *, by_alias: bool = True) -> AsyncIterator[bytes]:
    """
    Serialize `obj` to JSON only when the transport pulls the body.

    httpx sends async-iterator content with chunked transfer-encoding, so no
    Content-Length is computed up front.
    """
    yield _ANY_ADAPTER.dump_json(obj, by_alias=by_alias)


__all__ = [
    "JSON_MEDIA_TYPE",
    "JSON_CONTENT_TYPE",
    "parse_content_type",
    "media_type_of",
    "is_json",
    "read_json",
    "read_text",
    "iter_json",
]

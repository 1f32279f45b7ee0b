from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from .client import StateClient, _require_key
from .config import (
    DEFAULT_HTTP_PORT,
    STATE_PATH,
    base_url_from_env,
    http_port_from_env,
    resolve_state_url,
)
from .content import JSON_CONTENT_TYPE, is_json, iter_json, media_type_of, read_json
from .errors import StateOperationError, StateTransportError, classify_error
from .etag import ETag, NO_ETAG


logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateHttpClient(StateClient):
    """
    State client for a state store exposed over HTTP.

    Notes
    - Reads: GET {state_path}/{key}; 200 carries a JSON value and an ETag header,
      204 means no entry.
    - Saves: POST {state_path} with [{"key": ..., "value": ...}]; the body is
      serialized lazily and sent chunked (length unknown up front).
    - ETags travel in the If-Match header; a mismatch is silently ignored by the
      store, not reported.
    - Any 2xx in [200, 204] is success for writes and deletes.
    - No retries and no internal timeout. Cancel the awaiting task (or wrap the
      call in a timeout scope) to abort a request.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        base_url: Optional[str] = None,
        port: int = DEFAULT_HTTP_PORT,
        state_path: str = STATE_PATH,
        timeout: Optional[float] = None,
        by_alias: bool = True,
    ) -> None:
        if client is not None and base_url is not None:
            raise ValueError("pass either client or base_url, not both")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url or "", timeout=timeout)
        self._port = port
        self._state_path = state_path
        self._by_alias = by_alias

    @classmethod
    def from_env(cls, **kwargs: Any) -> "StateHttpClient":
        """Build a client from KVSTATE_BASE_URL / KVSTATE_HTTP_PORT (or DAPR_HTTP_PORT)."""
        return cls(base_url=base_url_from_env(), port=http_port_from_env(), **kwargs)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "StateHttpClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --------------- Public API ---------------
    async def get_state_and_etag(
        self,
        key: str,
        *,
        type_: Type[T] = Any,  # type: ignore[assignment]
        default: Optional[T] = None,
    ) -> Tuple[Optional[T], ETag]:
        _require_key(key)
        adapter: TypeAdapter[T] = TypeAdapter(type_)
        request = self._client.build_request("GET", self._url(key))
        response = await self._send(request, "get state")
        try:
            # 200: found state
            if response.status_code == 200:
                if not is_json(response):
                    raise StateOperationError(
                        "get state",
                        200,
                        f"Failed to get state: unexpected content type '{media_type_of(response)}'.",
                    )
                try:
                    value = await read_json(response, adapter)
                except (ValidationError, LookupError, UnicodeDecodeError) as exc:
                    raise StateOperationError(
                        "get state", 200, f"Failed to get state: invalid response body: {exc}"
                    ) from exc
                return (value, ETag.from_header(response.headers.get("etag")))

            # 204: no entry for this key
            if response.status_code == 204:
                return (default, NO_ETAG)

            raise await classify_error(response, "get state")
        except httpx.TransportError as exc:
            # Body reads happen after send() returned (stream=True)
            raise StateTransportError(f"Failed to get state: {exc!r}") from exc
        finally:
            await response.aclose()

    async def save_state(self, key: str, value: Any, etag: ETag = NO_ETAG) -> None:
        _require_key(key)
        headers = self._etag_headers(etag)
        headers["content-type"] = JSON_CONTENT_TYPE
        request = self._client.build_request(
            "POST",
            self._url(),
            content=iter_json([{"key": key, "value": value}], by_alias=self._by_alias),
            headers=headers,
        )
        await self._expect_success(request, "save state")

    async def delete_state(self, key: str, etag: ETag = NO_ETAG) -> None:
        _require_key(key)
        request = self._client.build_request(
            "DELETE", self._url(key), headers=self._etag_headers(etag)
        )
        await self._expect_success(request, "delete state")

    # --------------- Internal ---------------
    def _url(self, key: Optional[str] = None) -> str:
        return resolve_state_url(
            str(self._client.base_url) or None,
            key,
            port=self._port,
            state_path=self._state_path,
        )

    @staticmethod
    def _etag_headers(etag: ETag) -> Dict[str, str]:
        if etag.has_value:
            return {"if-match": etag.value}  # type: ignore[dict-item]
        return {}

    async def _send(self, request: httpx.Request, operation: str) -> httpx.Response:
        try:
            response = await self._client.send(request, stream=True)
        except httpx.TransportError as exc:
            raise StateTransportError(f"Failed to {operation}: {exc!r}") from exc
        logger.debug(f"{request.method} {request.url} -> {response.status_code}")
        return response

    async def _expect_success(self, request: httpx.Request, operation: str) -> None:
        response = await self._send(request, operation)
        try:
            # Accept the range of 2xx codes in common use for writes
            if 200 <= response.status_code <= 204:
                return
            raise await classify_error(response, operation)
        except httpx.TransportError as exc:
            raise StateTransportError(f"Failed to {operation}: {exc!r}") from exc
        finally:
            await response.aclose()


__all__ = ["StateHttpClient"]

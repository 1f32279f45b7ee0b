"""
In-memory StateClient for unit tests.

Reproduces the conditional semantics of the HTTP client without a network so
applications can test their own optimistic-concurrency logic:

- save/delete with NO_ETAG are unconditional.
- save/delete with an ETag against an existing entry apply only if the ETag
  matches; a mismatch is a silent no-op.
- save with an ETag against a missing key stores the value (vacuous match).

Values are kept in their JSON form and re-validated with `type_` on every read,
the same round trip the HTTP client performs, so callers never share objects
with the store.

An anyio.Lock serializes every operation, so the compare-and-set is atomic for
tasks in one event loop. Not safe across threads or processes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple, Type, TypeVar
from uuid import uuid4

import anyio
from pydantic import TypeAdapter

from .client import StateClient, _require_key
from .etag import ETag, NO_ETAG


logger = logging.getLogger(__name__)

T = TypeVar("T")

_ANY_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def _new_etag() -> ETag:
    return ETag(str(uuid4()))


def _to_json_value(value: Any) -> Any:
    # Fresh JSON-compatible copy (dicts, lists, str, numbers, None)
    return _ANY_ADAPTER.dump_python(value, mode="json", by_alias=True)


class InMemoryStateClient(StateClient):
    """Dict-backed state client. `state` maps key -> (value, etag) and may be seeded directly."""

    def __init__(self, state: Optional[Dict[str, Tuple[Any, ETag]]] = None) -> None:
        self.state: Dict[str, Tuple[Any, ETag]] = dict(state or {})
        self._lock = anyio.Lock()

    async def get_state_and_etag(
        self,
        key: str,
        *,
        type_: Type[T] = Any,  # type: ignore[assignment]
        default: Optional[T] = None,
    ) -> Tuple[Optional[T], ETag]:
        _require_key(key)
        async with self._lock:
            item = self.state.get(key)
            if item is None:
                return (default, NO_ETAG)
            value = _to_json_value(item[0])
        return (TypeAdapter(type_).validate_python(value), item[1])

    async def save_state(self, key: str, value: Any, etag: ETag = NO_ETAG) -> None:
        _require_key(key)
        stored = _to_json_value(value)
        async with self._lock:
            current = self.state.get(key)
            if etag.has_value and current is not None:
                # Stored value + ETag: emulate If-Match
                if current[1] != etag:
                    logger.debug(f"Rejected save of {key} (etag: {etag.value})")
                    return
                self.state[key] = (stored, _new_etag())
                return

            # No value stored, or no ETag: overwrite what's there
            self.state[key] = (stored, etag if etag.has_value else _new_etag())

    async def delete_state(self, key: str, etag: ETag = NO_ETAG) -> None:
        _require_key(key)
        async with self._lock:
            current = self.state.get(key)
            if etag.has_value and current is not None and current[1] != etag:
                logger.debug(f"Rejected delete of {key} (etag: {etag.value})")
                return
            self.state.pop(key, None)


__all__ = ["InMemoryStateClient"]

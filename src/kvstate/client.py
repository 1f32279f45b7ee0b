from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple, Type, TypeVar

from .entry import StateEntry
from .etag import ETag, NO_ETAG


T = TypeVar("T")


def _require_key(key: str) -> None:
    if not key:
        raise ValueError("key is required")


class StateClient(ABC):
    """
    Optimistic-concurrency access to a key/value state store.

    Contract shared by every realization
    - Reads of a missing key return `default`, never raise.
    - `save_state` / `delete_state` with `NO_ETAG` are unconditional.
    - With a present ETag the mutation applies only if it matches the stored
      ETag. A mismatch is NOT an error: the call returns normally and the store
      is left untouched. Detecting that (re-read, compare, retry) is up to the
      caller.
    - A present ETag against a key with no stored value is treated as a match.
    - An empty key raises ValueError before any I/O.
    """

    async def get_state(
        self,
        key: str,
        *,
        type_: Type[T] = Any,  # type: ignore[assignment]
        default: Optional[T] = None,
    ) -> Optional[T]:
        """Return the value stored under `key`, or `default` when absent."""
        value, _ = await self.get_state_and_etag(key, type_=type_, default=default)
        return value

    @abstractmethod
    async def get_state_and_etag(
        self,
        key: str,
        *,
        type_: Type[T] = Any,  # type: ignore[assignment]
        default: Optional[T] = None,
    ) -> Tuple[Optional[T], ETag]:
        """Return `(value, etag)`; `(default, NO_ETAG)` when the key is absent."""

    async def get_state_entry(
        self,
        key: str,
        *,
        type_: Type[T] = Any,  # type: ignore[assignment]
        default: Optional[T] = None,
    ) -> StateEntry[T]:
        """Read `key` into a StateEntry that can later save or delete with its ETag."""
        value, etag = await self.get_state_and_etag(key, type_=type_, default=default)
        return StateEntry(self, key, value, etag)

    @abstractmethod
    async def save_state(self, key: str, value: Any, etag: ETag = NO_ETAG) -> None:
        """Write `value` under `key`, conditionally on `etag` when it has a value."""

    @abstractmethod
    async def delete_state(self, key: str, etag: ETag = NO_ETAG) -> None:
        """Remove `key`, conditionally on `etag` when it has a value."""


__all__ = ["StateClient"]

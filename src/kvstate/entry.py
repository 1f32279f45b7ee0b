from __future__ import annotations

from typing import TYPE_CHECKING, Generic, Optional, TypeVar

from .etag import ETag

if TYPE_CHECKING:
    from .client import StateClient


T = TypeVar("T")


class StateEntry(Generic[T]):
    """
    A value read from the state store together with the ETag it was read at.

    Usage
    - Obtain one via `StateClient.get_state_entry(key)`.
    - Mutate `value` freely, then `await entry.save()`; the write is conditional
      on the ETag captured at read time.
    - `etag` is not refreshed by `save()` or `delete()`. After a successful save
      the store may hold a newer ETag, so a second `save()` on the same entry
      can be silently rejected. Re-read to get a fresh entry.
    """

    def __init__(self, client: "StateClient", key: str, value: Optional[T], etag: ETag) -> None:
        if client is None:
            raise ValueError("client is required")
        if not key:
            raise ValueError("key is required")
        self._client = client
        self._key = key
        self._etag = etag
        self.value = value

    @property
    def key(self) -> str:
        return self._key

    @property
    def etag(self) -> ETag:
        return self._etag

    async def save(self) -> None:
        """Save the current `value` under `key`, conditional on `etag`."""
        await self._client.save_state(self._key, self.value, self._etag)

    async def delete(self) -> None:
        """Delete `key`, conditional on `etag`. The entry object itself stays usable."""
        await self._client.delete_state(self._key, self._etag)

    def __repr__(self) -> str:
        return f"StateEntry(key={self._key!r}, value={self.value!r}, etag={self._etag!r})"


__all__ = ["StateEntry"]

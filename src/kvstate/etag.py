from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ETag:
    """
    Opaque version identifier returned by the state store.

    - `value=None` is the "no ETag" sentinel: writes and deletes carrying it are
      unconditional. It never equals a present ETag, not even `ETag("")`.
    - Present values are compared with exact string equality and never parsed.
    """

    value: Optional[str] = None

    @property
    def has_value(self) -> bool:
        return self.value is not None

    @classmethod
    def from_header(cls, raw: Optional[str]) -> "ETag":
        """Build an ETag from a response header value (missing -> sentinel)."""
        return cls(raw) if raw is not None else NO_ETAG

    def __str__(self) -> str:
        return self.value or ""


NO_ETAG = ETag()


__all__ = ["ETag", "NO_ETAG"]

"""
Optimistic-concurrency client for a key/value state store over HTTP.

Modules:
- etag: opaque version tokens (ETag, NO_ETAG)
- client: the async StateClient contract
- http_client: StateHttpClient, the httpx-backed realization
- memory: InMemoryStateClient, a drop-in test double
- entry: StateEntry, a value paired with the ETag it was read at
- errors: error types and response classification
"""

from .client import StateClient
from .entry import StateEntry
from .errors import ErrorResponse, StateOperationError, StateStoreError, StateTransportError
from .etag import ETag, NO_ETAG
from .http_client import StateHttpClient
from .memory import InMemoryStateClient

__all__ = [
    "ETag",
    "NO_ETAG",
    "StateClient",
    "StateEntry",
    "StateHttpClient",
    "InMemoryStateClient",
    "StateStoreError",
    "StateOperationError",
    "StateTransportError",
    "ErrorResponse",
]

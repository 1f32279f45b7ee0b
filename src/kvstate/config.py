from __future__ import annotations

import os
from typing import Optional
from urllib.parse import quote


STATE_PATH = "/v1.0/state"
DEFAULT_HTTP_PORT = 3500

# Environment variable names for convenience configuration
ENV_BASE_URL = "KVSTATE_BASE_URL"
ENV_HTTP_PORT = "KVSTATE_HTTP_PORT"

# Sidecar-style fallback (port of a local state store API)
FALLBACK_ENV_HTTP_PORT = "DAPR_HTTP_PORT"


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def http_port_from_env() -> int:
    """Port from KVSTATE_HTTP_PORT, then DAPR_HTTP_PORT, else 3500."""
    for name in (ENV_HTTP_PORT, FALLBACK_ENV_HTTP_PORT):
        raw = _getenv(name)
        if raw is None:
            continue
        try:
            port = int(raw)
        except ValueError:
            raise RuntimeError(f"Invalid port in {name}: {raw!r}") from None
        if not 0 < port < 65536:
            raise RuntimeError(f"Invalid port in {name}: {raw!r}")
        return port
    return DEFAULT_HTTP_PORT


def base_url_from_env() -> Optional[str]:
    return _getenv(ENV_BASE_URL)


def resolve_state_url(
    base_url: Optional[str],
    key: Optional[str] = None,
    *,
    port: int = DEFAULT_HTTP_PORT,
    state_path: str = STATE_PATH,
) -> str:
    """
    Build the request target for a state operation.

    - With a configured base URL the result is a path relative to it.
    - Without one, the target is absolute against `http://localhost:{port}`.
    - `key=None` addresses the collection (used by bulk save).
    """
    path = state_path.rstrip("/")
    if key is not None:
        path = f"{path}/{quote(key, safe='')}"
    if base_url:
        return path
    return f"http://localhost:{port}{path}"


__all__ = [
    "STATE_PATH",
    "DEFAULT_HTTP_PORT",
    "ENV_BASE_URL",
    "ENV_HTTP_PORT",
    "FALLBACK_ENV_HTTP_PORT",
    "http_port_from_env",
    "base_url_from_env",
    "resolve_state_url",
]

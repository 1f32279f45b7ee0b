from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .content import is_json, read_json, read_text


logger = logging.getLogger(__name__)


class StateStoreError(RuntimeError):
    """Base error for state store clients."""


class StateOperationError(StateStoreError):
    """The store rejected an operation or answered with something unusable."""

    def __init__(self, operation: str, status_code: Optional[int], detail: str) -> None:
        super().__init__(detail)
        self.operation = operation
        self.status_code = status_code
        self.detail = detail


class StateTransportError(StateStoreError):
    """The request never produced a response (connection, TLS, protocol errors)."""


class ErrorResponse(BaseModel):
    """Error payload returned by the state store: {"errorCode": ..., "message": ...}."""

    model_config = ConfigDict(populate_by_name=True)

    error_code: str = Field(default="", alias="errorCode")
    message: str = ""


_ERROR_ADAPTER = TypeAdapter(ErrorResponse)


async def classify_error(response: httpx.Response, operation: str) -> StateOperationError:
    """
    Turn a non-success response into a single StateOperationError.

    The store answers 400 for configuration problems and 500 for anything else;
    both are surfaced the same way since application code can't act on them.
    """
    status = response.status_code
    prefix = f"Failed to {operation} with status code '{status}'"

    body = await response.aread()
    if not body:
        detail = f"{prefix}."
    elif is_json(response):
        try:
            error = await read_json(response, _ERROR_ADAPTER)
        except (ValidationError, LookupError, UnicodeDecodeError):
            # Declared JSON but not the error shape: fall back to the raw text
            detail = f"{prefix}: {await read_text(response)}."
        else:
            detail = f"{prefix}: {error.error_code}.\n{error.message}"
    else:
        detail = f"{prefix}: {await read_text(response)}."

    logger.debug(detail)
    return StateOperationError(operation, status, detail)


__all__ = [
    "StateStoreError",
    "StateOperationError",
    "StateTransportError",
    "ErrorResponse",
    "classify_error",
]

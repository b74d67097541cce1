"""Error taxonomy for catalog mutations.

Local validation failures never reach the network. Store failures are
classified once, here, and carry whatever context the failure provided
(HTTP status, field-level messages) up to where they are rendered.
"""

from typing import Any

import httpx


class CatalogError(Exception):
    """Base class for every failure surfaced by the engine."""

    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, status: int | None = None) -> None:
        self.message = message or self.default_message
        self.status = status
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Single actionable message for the active form or row."""
        return self.message


class ValidationError(CatalogError):
    """Local, pre-network validation failure on a single field."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class NotFoundError(CatalogError):
    """Target record vanished; the caller should refresh the listing."""

    default_message = "Product not found"


class RemoteValidationError(CatalogError):
    """Field-level validation errors echoed from the store."""

    default_message = "Validation error"

    def __init__(self, field_map: dict[str, str], status: int | None = 400) -> None:
        self.field_map = dict(field_map)
        super().__init__(self.default_message, status=status)

    @property
    def user_message(self) -> str:
        details = ", ".join(f"{field}: {msg}" for field, msg in self.field_map.items())
        return f"{self.message}: {details}" if details else self.message


class ConnectivityError(CatalogError):
    """Network or transport failure; the store was not reached."""

    default_message = "Could not reach the record store"


class UnknownError(CatalogError):
    """Fallback for any store failure that fits no other class."""

    default_message = "The record store rejected the request"


class MutationInFlightError(CatalogError):
    """The same action is already waiting for the store."""

    default_message = "A save for this item is already in progress"


class RecordStoreError(Exception):
    """Raised by record store adapters when a request fails.

    ``status`` is 0 for transport failures. ``data`` is the decoded error
    body, if any.
    """

    def __init__(self, status: int, data: dict[str, Any] | None = None, message: str = "") -> None:
        self.status = status
        self.data = data or {}
        super().__init__(message or f"Record store request failed with status {status}")


def extract_field_map(data: dict[str, Any]) -> dict[str, str]:
    """Pull ``{field: message}`` out of a store error body.

    Accepts both ``{"data": {"name": {"message": "..."}}}`` and a flat
    ``{"name": "..."}`` shape under ``data``.
    """
    fields = data.get("data")
    if not isinstance(fields, dict):
        return {}
    field_map: dict[str, str] = {}
    for field, detail in fields.items():
        if isinstance(detail, dict):
            field_map[field] = str(detail.get("message") or detail.get("code") or "invalid")
        else:
            field_map[field] = str(detail)
    return field_map


def classify_failure(exc: BaseException) -> CatalogError:
    """Map an exception raised during a store call onto the taxonomy.

    Args:
        exc: Exception raised by the record store adapter

    Returns:
        CatalogError subclass instance describing the failure
    """
    if isinstance(exc, CatalogError):
        return exc

    if isinstance(exc, RecordStoreError):
        if exc.status == 0:
            return ConnectivityError(status=0)
        if exc.status == 404:
            return NotFoundError(status=404)
        if exc.status == 400:
            field_map = extract_field_map(exc.data)
            if field_map:
                return RemoteValidationError(field_map, status=400)
        return UnknownError(status=exc.status)

    if isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError)):
        return ConnectivityError(status=0)

    return UnknownError()

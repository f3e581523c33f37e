"""
Error types raised by the store layer.
"""

from typing import Optional

from azure.cosmos import exceptions as cosmos_exceptions


class StoreError(Exception):
    """A store-originated failure carrying the HTTP status and response detail."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class ItemNotFoundError(StoreError):
    """The addressed resource does not exist (404)."""


class ItemConflictError(StoreError):
    """An item with the same id already exists under the partition key (409)."""


class ThroughputUnsupportedError(StoreError):
    """The container does not expose a fixed provisioned throughput."""


class ConfigurationError(Exception):
    """Required connection settings are missing."""


def translate_cosmos_error(exc: cosmos_exceptions.CosmosHttpResponseError,
                           context: str = "") -> StoreError:
    """Map an SDK error onto the store error taxonomy."""
    status_code = getattr(exc, "status_code", None)
    detail = getattr(exc, "http_error_message", None) or str(exc)
    message = f"{context}: {detail}" if context else detail

    if status_code == 404:
        return ItemNotFoundError(message, status_code, detail)
    if status_code == 409:
        return ItemConflictError(message, status_code, detail)
    return StoreError(message, status_code, detail)

"""Failure taxonomy shared by the ownership services.

Every error carries the HTTP status the route layer reports it with. Only
``StoreUnavailableError`` is a service fault; the rest are caller-correctable.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from azure.core.exceptions import AzureError

logger = logging.getLogger(__name__)


class AssetCustodyError(Exception):
    http_status: int = 500


class NotFoundError(AssetCustodyError):
    http_status = 404

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class InvalidKindError(AssetCustodyError):
    http_status = 400

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(
            f"Invalid asset type '{value}'. Supported types: device, component, account"
        )


class InvalidActionError(AssetCustodyError):
    http_status = 400

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid action '{value}'. Supported actions: assign, unassign")


class ConflictError(AssetCustodyError):
    http_status = 400

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class StoreUnavailableError(AssetCustodyError):
    http_status = 500


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """Re-raise Azure SDK failures inside the block as ``StoreUnavailableError``."""
    try:
        yield
    except AzureError as e:
        logger.exception("Asset store failure during %s", operation)
        raise StoreUnavailableError(f"Asset store unavailable during {operation}") from e

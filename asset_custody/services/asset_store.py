"""Cosmos DB asset store for device, component, account and employee documents."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import AsyncIterator
from enum import Enum
from typing import Any, Protocol

from azure.cosmos.aio import CosmosClient
from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.cosmos.http_constants import StatusCodes

from asset_custody.core.config import Settings
from asset_custody.core.errors import StoreUnavailableError
from asset_custody.models.asset import EMPLOYEE_COLLECTION, AssetKind

logger = logging.getLogger(__name__)

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class AssetStore(Protocol):
    async def find_by_id(self, kind: str, item_id: str) -> dict[str, Any] | None: ...

    async def update_one_conditional(
        self,
        kind: str,
        item_id: str,
        expected: dict[str, Any],
        patch: dict[str, Any],
    ) -> dict[str, Any] | None: ...

    def find_all_by_kind(self, kind: str) -> AsyncIterator[dict[str, Any]]: ...

    async def count_by_filter(self, kind: str, filters: dict[str, Any]) -> int: ...

    async def find_by_filter(self, kind: str, filters: dict[str, Any]) -> list[dict[str, Any]]: ...


def _collection(kind: AssetKind | str) -> str:
    return kind.value if isinstance(kind, Enum) else str(kind)


def _field_ref(field: str) -> str:
    if not _FIELD_NAME.match(field):
        raise ValueError(f"Invalid field name: {field!r}")
    return f"c.{field}"


def _unset_clause(ref: str) -> str:
    # References cleared through a form arrive as "" or whitespace rather than null.
    return f'(NOT IS_DEFINED({ref}) OR IS_NULL({ref}) OR TRIM({ref}) = "")'


def build_filter_predicate(expected: dict[str, Any]) -> str:
    """Build a ``patch_item`` filter predicate; ``None`` matches an unset field."""
    clauses: list[str] = []
    for field, value in expected.items():
        ref = _field_ref(field)
        if value is None:
            clauses.append(_unset_clause(ref))
        else:
            clauses.append(f"{ref} = {json.dumps(value)}")
    return "FROM c WHERE " + " AND ".join(clauses) if clauses else "FROM c"


def build_where_clause(filters: dict[str, Any]) -> tuple[str, list[dict[str, Any]]]:
    clauses: list[str] = []
    params: list[dict[str, Any]] = []
    for index, (field, value) in enumerate(filters.items()):
        ref = _field_ref(field)
        if value is None:
            clauses.append(_unset_clause(ref))
            continue
        name = f"@p{index}"
        clauses.append(f"{ref} = {name}")
        params.append({"name": name, "value": value})
    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


class CosmosAssetStore:
    def __init__(self) -> None:
        self.client: CosmosClient | None = None
        self.containers: dict[str, Any] = {}
        self.initialized: bool = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not settings.COSMOS_DB_ENDPOINT or not settings.COSMOS_DB_KEY:
            logger.warning("Cosmos DB credentials missing, asset store not initialized")
            return

        self.client = CosmosClient(settings.COSMOS_DB_ENDPOINT, settings.COSMOS_DB_KEY)
        db = self.client.get_database_client(settings.COSMOS_DB_DATABASE)
        names = {
            AssetKind.DEVICE.value: settings.COSMOS_DB_DEVICES_CONTAINER,
            AssetKind.COMPONENT.value: settings.COSMOS_DB_COMPONENTS_CONTAINER,
            AssetKind.ACCOUNT.value: settings.COSMOS_DB_ACCOUNTS_CONTAINER,
            EMPLOYEE_COLLECTION: settings.COSMOS_DB_EMPLOYEES_CONTAINER,
        }
        self.containers = {kind: db.get_container_client(name) for kind, name in names.items()}
        self.initialized = True
        logger.info("Asset store initialized (database=%s)", settings.COSMOS_DB_DATABASE)

    async def close(self) -> None:
        if self.client:
            await self.client.close()
        self.client = None
        self.containers = {}
        self.initialized = False

    def _container(self, kind: AssetKind | str) -> Any:
        collection = _collection(kind)
        container = self.containers.get(collection)
        if container is None:
            if not self.initialized:
                raise StoreUnavailableError("Asset store not initialized")
            raise ValueError(f"Unknown collection: {collection}")
        return container

    async def find_by_id(self, kind: AssetKind | str, item_id: str) -> dict[str, Any] | None:
        container = self._container(kind)
        try:
            return await container.read_item(item=item_id, partition_key=item_id)
        except CosmosHttpResponseError as e:
            if e.status_code == StatusCodes.NOT_FOUND:
                return None
            raise

    async def update_one_conditional(
        self,
        kind: AssetKind | str,
        item_id: str,
        expected: dict[str, Any],
        patch: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Patch one document only if it still matches ``expected``.

        Returns the patched document, or ``None`` when the document is gone or
        no longer matches.
        """
        container = self._container(kind)
        operations = [{"op": "set", "path": f"/{field}", "value": value} for field, value in patch.items()]
        try:
            return await container.patch_item(
                item=item_id,
                partition_key=item_id,
                patch_operations=operations,
                filter_predicate=build_filter_predicate(expected),
            )
        except CosmosHttpResponseError as e:
            if e.status_code in (StatusCodes.PRECONDITION_FAILED, StatusCodes.NOT_FOUND):
                logger.debug(
                    "Conditional patch on %s/%s matched nothing (status=%s)",
                    _collection(kind),
                    item_id,
                    e.status_code,
                )
                return None
            raise

    async def find_all_by_kind(self, kind: AssetKind | str) -> AsyncIterator[dict[str, Any]]:
        container = self._container(kind)
        async for item in container.read_all_items():
            yield item

    async def count_by_filter(self, kind: AssetKind | str, filters: dict[str, Any]) -> int:
        container = self._container(kind)
        where, params = build_where_clause(filters)
        async for count in container.query_items(
            query=f"SELECT VALUE COUNT(1) FROM c{where}",
            parameters=params,
        ):
            return int(count)
        return 0

    async def find_by_filter(self, kind: AssetKind | str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        container = self._container(kind)
        where, params = build_where_clause(filters)
        items: list[dict[str, Any]] = []
        async for item in container.query_items(query=f"SELECT * FROM c{where}", parameters=params):
            items.append(item)
        return items

    async def check_connection(self) -> bool:
        if not self.initialized:
            return False
        try:
            await self.count_by_filter(EMPLOYEE_COLLECTION, {})
            return True
        except Exception:
            logger.exception("Cosmos DB connection check failed")
            return False


asset_store = CosmosAssetStore()

"""Checks consulted before employees or assets are deleted."""

from __future__ import annotations

import logging

from asset_custody.core.errors import NotFoundError, translate_store_errors
from asset_custody.models.asset import EMPLOYEE_COLLECTION, AssetKind
from asset_custody.models.ownership import Decision
from asset_custody.services.asset_store import AssetStore, asset_store
from asset_custody.services.ownership_checker import check_manager
from asset_custody.services.status_policy import is_owner_set, parse_kind

logger = logging.getLogger(__name__)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def _blocked(subject_id: str, reason: str) -> Decision:
    logger.info("Deletion of %s blocked: %s", subject_id, reason)
    return Decision.reject(reason)


class DeletionGuard:
    def __init__(self, store: AssetStore) -> None:
        self.store = store

    async def can_delete_employee(self, employee_id: str) -> Decision:
        with translate_store_errors("employee deletion check"):
            if await self.store.find_by_id(EMPLOYEE_COLLECTION, employee_id) is None:
                raise NotFoundError("employee", employee_id)

            owned = 0
            for kind in AssetKind:
                owned += await self.store.count_by_filter(kind, {"assignedTo": employee_id})
            if owned:
                return _blocked(employee_id, f"employee still owns {_plural(owned, 'asset')}")

            managed = await self.store.count_by_filter(EMPLOYEE_COLLECTION, {"manager": employee_id})
            if managed:
                return _blocked(employee_id, f"employee manages {_plural(managed, 'other employee')}")

        return Decision.allow()

    async def can_delete_asset(self, kind: AssetKind | str, asset_id: str) -> Decision:
        kind = parse_kind(kind)
        with translate_store_errors(f"{kind.value} deletion check"):
            document = await self.store.find_by_id(kind, asset_id)
            if document is None:
                raise NotFoundError(kind.value, asset_id)

            if is_owner_set(document):
                return _blocked(asset_id, f"{kind.value} is still assigned to an employee")

            if kind is AssetKind.DEVICE:
                installed = await self.store.count_by_filter(AssetKind.COMPONENT, {"installedIn": asset_id})
                if installed:
                    return _blocked(
                        asset_id,
                        f"device still has {_plural(installed, 'installed component')}",
                    )

        return Decision.allow()

    async def validate_manager(self, employee_id: str, manager_id: str | None) -> Decision:
        decision = check_manager(employee_id, manager_id)
        if not decision.allowed:
            return decision

        with translate_store_errors("manager validation"):
            if await self.store.find_by_id(EMPLOYEE_COLLECTION, employee_id) is None:
                raise NotFoundError("employee", employee_id)
            if manager_id and await self.store.find_by_id(EMPLOYEE_COLLECTION, manager_id) is None:
                raise NotFoundError("manager", manager_id)

        return Decision.allow()


deletion_guard = DeletionGuard(asset_store)

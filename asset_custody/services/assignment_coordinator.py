"""Assign/unassign transactions over a single asset document.

Each transaction is one conditional patch keyed on the owner the asset had when
it was checked, so two writers racing for the same asset cannot both win. The
employee document is only read, never written.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, NoReturn

from azure.core.exceptions import AzureError

from asset_custody.core.errors import ConflictError, NotFoundError, translate_store_errors
from asset_custody.models.asset import (
    EMPLOYEE_COLLECTION,
    Account,
    Asset,
    AssetKind,
    Component,
    Device,
    OwnedAssets,
    parse_asset,
)
from asset_custody.models.employee import Employee
from asset_custody.models.ownership import AssignmentAction, Decision
from asset_custody.services.asset_store import AssetStore, asset_store
from asset_custody.services.ownership_checker import check_assign, check_release, check_unassign
from asset_custody.services.status_policy import parse_action, parse_kind, target_state

logger = logging.getLogger(__name__)

CONCURRENT_CHANGE = "asset ownership changed concurrently, reload and retry"


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class AssignmentCoordinator:
    def __init__(self, store: AssetStore) -> None:
        self.store = store

    async def assign(self, employee_id: str, kind: AssetKind | str, asset_id: str) -> Asset:
        return await self.apply(AssignmentAction.ASSIGN, employee_id, kind, asset_id)

    async def unassign(self, employee_id: str, kind: AssetKind | str, asset_id: str) -> Asset:
        return await self.apply(AssignmentAction.UNASSIGN, employee_id, kind, asset_id)

    async def apply(
        self,
        action: AssignmentAction | str,
        employee_id: str,
        kind: AssetKind | str,
        asset_id: str,
    ) -> Asset:
        action = parse_action(action)
        kind = parse_kind(kind)

        await self._load_employee(employee_id)
        asset = await self._load_asset(kind, asset_id)

        decision = await self._decide(action, asset, employee_id)
        if not decision.allowed:
            raise ConflictError(decision.reason or CONCURRENT_CHANGE)

        if action is AssignmentAction.ASSIGN:
            expected_owner, new_owner = None, employee_id
        else:
            expected_owner, new_owner = employee_id, None

        updated = await self._commit(kind, asset_id, action, expected_owner, new_owner)
        if updated is None:
            await self._raise_lost_race(kind, asset_id, lambda fresh: self._decide(action, fresh, employee_id))

        logger.info(
            "%s %s %s for employee %s",
            action.value,
            kind.value,
            asset_id,
            employee_id,
        )
        return parse_asset(kind, updated)

    async def release(self, kind: AssetKind | str, asset_id: str) -> Asset:
        """Unassign ``asset_id`` from whoever currently holds it."""
        kind = parse_kind(kind)
        asset = await self._load_asset(kind, asset_id)

        decision = check_release(asset)
        if not decision.allowed:
            raise ConflictError(decision.reason or CONCURRENT_CHANGE)

        previous_owner = asset.assigned_to
        updated = await self._commit(kind, asset_id, AssignmentAction.UNASSIGN, previous_owner, None)
        if updated is None:
            await self._raise_lost_race(kind, asset_id, self._decide_release)

        logger.info("released %s %s from employee %s", kind.value, asset_id, previous_owner)
        return parse_asset(kind, updated)

    async def owned_assets(self, employee_id: str) -> OwnedAssets:
        await self._load_employee(employee_id)
        with translate_store_errors("owned asset lookup"):
            devices = await self.store.find_by_filter(AssetKind.DEVICE, {"assignedTo": employee_id})
            components = await self.store.find_by_filter(AssetKind.COMPONENT, {"assignedTo": employee_id})
            accounts = await self.store.find_by_filter(AssetKind.ACCOUNT, {"assignedTo": employee_id})
        return OwnedAssets(
            employee_id=employee_id,
            devices=[Device.model_validate(doc) for doc in devices],
            components=[Component.model_validate(doc) for doc in components],
            accounts=[Account.model_validate(doc) for doc in accounts],
        )

    async def _load_employee(self, employee_id: str) -> Employee:
        with translate_store_errors("employee lookup"):
            document = await self.store.find_by_id(EMPLOYEE_COLLECTION, employee_id)
        if document is None:
            raise NotFoundError("employee", employee_id)
        return Employee.model_validate(document)

    async def _load_asset(self, kind: AssetKind, asset_id: str) -> Asset:
        with translate_store_errors(f"{kind.value} lookup"):
            document = await self.store.find_by_id(kind, asset_id)
        if document is None:
            raise NotFoundError(kind.value, asset_id)
        stored_kind = document.get("kind")
        if stored_kind is not None and stored_kind != kind.value:
            raise NotFoundError(kind.value, asset_id)
        return parse_asset(kind, document)

    async def _owner_name(self, owner_id: str) -> str | None:
        try:
            document = await self.store.find_by_id(EMPLOYEE_COLLECTION, owner_id)
        except AzureError:
            logger.warning("Could not resolve current owner %s, using placeholder", owner_id)
            return None
        if not document:
            return None
        return document.get("name")

    async def _decide(self, action: AssignmentAction, asset: Asset, employee_id: str) -> Decision:
        if action is AssignmentAction.UNASSIGN:
            return check_unassign(asset, employee_id)
        owner_name = None
        if asset.assigned_to is not None and asset.assigned_to != employee_id:
            owner_name = await self._owner_name(asset.assigned_to)
        return check_assign(asset, employee_id, owner_name)

    async def _decide_release(self, asset: Asset) -> Decision:
        return check_release(asset)

    async def _commit(
        self,
        kind: AssetKind,
        asset_id: str,
        action: AssignmentAction,
        expected_owner: str | None,
        new_owner: str | None,
    ) -> dict[str, Any] | None:
        patch: dict[str, Any] = {"assignedTo": new_owner, **target_state(kind, action), "updatedAt": _utcnow()}
        # No retry: a patch that timed out may already have been applied.
        with translate_store_errors(f"{kind.value} {action.value}"):
            return await self.store.update_one_conditional(kind, asset_id, {"assignedTo": expected_owner}, patch)

    async def _raise_lost_race(
        self,
        kind: AssetKind,
        asset_id: str,
        decide: Callable[[Asset], Awaitable[Decision]],
    ) -> NoReturn:
        logger.warning("Lost ownership race on %s %s", kind.value, asset_id)
        fresh = await self._load_asset(kind, asset_id)
        decision = await decide(fresh)
        if decision.allowed:
            raise ConflictError(CONCURRENT_CHANGE)
        raise ConflictError(decision.reason or CONCURRENT_CHANGE)


assignment_coordinator = AssignmentCoordinator(asset_store)

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from asset_custody.core.dependencies import (
    get_assignment_coordinator,
    get_current_actor,
    get_deletion_guard,
    require_role,
    to_http_exception,
)
from asset_custody.core.errors import AssetCustodyError
from asset_custody.models.asset import OwnedAssets
from asset_custody.models.auth import Actor
from asset_custody.models.ownership import AssignmentAction, AssignmentRequest, AssignmentResponse, Decision
from asset_custody.services.assignment_coordinator import AssignmentCoordinator
from asset_custody.services.deletion_guard import DeletionGuard
from asset_custody.services.status_policy import parse_action, parse_kind

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


@router.post("/{employee_id}/assign", response_model=AssignmentResponse)
async def assign_asset(
    employee_id: str,
    request: AssignmentRequest,
    actor: Actor = Depends(require_role("admin", "manager")),  # noqa: B008
    coordinator: AssignmentCoordinator = Depends(get_assignment_coordinator),  # noqa: B008
):
    try:
        action = parse_action(request.action)
        kind = parse_kind(request.asset_type)
        asset = await coordinator.apply(action, employee_id, kind, request.asset_id)
    except AssetCustodyError as err:
        logger.info(
            "%s of %s %s to employee %s refused for actor=%s: %s",
            request.action,
            request.asset_type,
            request.asset_id,
            employee_id,
            actor.id,
            err,
        )
        raise to_http_exception(err) from err

    verb = "Assigned" if action is AssignmentAction.ASSIGN else "Unassigned"
    return AssignmentResponse(
        message=f"{verb} {kind.value} successfully",
        data=asset.model_dump(by_alias=True),
    )


@router.get("/{employee_id}/assets", response_model=OwnedAssets)
async def list_owned_assets(
    employee_id: str,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    coordinator: AssignmentCoordinator = Depends(get_assignment_coordinator),  # noqa: B008
):
    try:
        return await coordinator.owned_assets(employee_id)
    except AssetCustodyError as err:
        raise to_http_exception(err) from err


@router.get("/{employee_id}/deletion-check", response_model=Decision)
async def employee_deletion_check(
    employee_id: str,
    actor: Actor = Depends(require_role("admin")),  # noqa: B008
    guard: DeletionGuard = Depends(get_deletion_guard),  # noqa: B008
):
    try:
        return await guard.can_delete_employee(employee_id)
    except AssetCustodyError as err:
        raise to_http_exception(err) from err


@router.get("/{employee_id}/manager-check", response_model=Decision)
async def manager_check(
    employee_id: str,
    manager_id: str | None = None,
    actor: Actor = Depends(require_role("admin", "manager")),  # noqa: B008
    guard: DeletionGuard = Depends(get_deletion_guard),  # noqa: B008
):
    try:
        return await guard.validate_manager(employee_id, manager_id)
    except AssetCustodyError as err:
        raise to_http_exception(err) from err

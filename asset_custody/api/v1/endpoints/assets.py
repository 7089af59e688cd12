from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from asset_custody.core.dependencies import (
    get_assignment_coordinator,
    get_deletion_guard,
    require_role,
    to_http_exception,
)
from asset_custody.core.errors import AssetCustodyError
from asset_custody.models.auth import Actor
from asset_custody.models.ownership import AssignmentResponse, Decision
from asset_custody.services.assignment_coordinator import AssignmentCoordinator
from asset_custody.services.deletion_guard import DeletionGuard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assets", tags=["assets"])


@router.post("/{kind}/{asset_id}/release", response_model=AssignmentResponse)
async def release_asset(
    kind: str,
    asset_id: str,
    actor: Actor = Depends(require_role("admin", "manager")),  # noqa: B008
    coordinator: AssignmentCoordinator = Depends(get_assignment_coordinator),  # noqa: B008
):
    try:
        asset = await coordinator.release(kind, asset_id)
    except AssetCustodyError as err:
        logger.info("Release of %s %s refused for actor=%s: %s", kind, asset_id, actor.id, err)
        raise to_http_exception(err) from err

    return AssignmentResponse(
        message=f"Released {kind.lower()} successfully",
        data=asset.model_dump(by_alias=True),
    )


@router.get("/{kind}/{asset_id}/deletion-check", response_model=Decision)
async def asset_deletion_check(
    kind: str,
    asset_id: str,
    actor: Actor = Depends(require_role("admin")),  # noqa: B008
    guard: DeletionGuard = Depends(get_deletion_guard),  # noqa: B008
):
    try:
        return await guard.can_delete_asset(kind, asset_id)
    except AssetCustodyError as err:
        raise to_http_exception(err) from err

from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, status

from asset_custody.core.auth import extract_roles, validate_token
from asset_custody.core.config import settings
from asset_custody.core.errors import AssetCustodyError
from asset_custody.models.auth import Actor
from asset_custody.services.assignment_coordinator import AssignmentCoordinator, assignment_coordinator
from asset_custody.services.deletion_guard import DeletionGuard, deletion_guard
from asset_custody.services.reconciliation import ReconciliationSweep, reconciliation_sweep

logger = logging.getLogger(__name__)


async def get_current_actor(authorization: str | None = Header(None)) -> Actor:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization.split(" ", 1)[1]

    try:
        payload = validate_token(
            token,
            settings.AZURE_AD_TENANT_ID,
            settings.AZURE_AD_CLIENT_ID,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Token validation error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return Actor(
        id=payload.get("oid"),
        name=payload.get("name"),
        email=payload.get("preferred_username"),
        roles=extract_roles(payload),
    )


def require_role(*roles: str):
    async def _check_role(actor: Actor = Depends(get_current_actor)) -> Actor:  # noqa: B008
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {', '.join(roles)}",
            )
        return actor

    return _check_role


def get_assignment_coordinator() -> AssignmentCoordinator:
    return assignment_coordinator


def get_reconciliation_sweep() -> ReconciliationSweep:
    return reconciliation_sweep


def get_deletion_guard() -> DeletionGuard:
    return deletion_guard


def to_http_exception(err: AssetCustodyError) -> HTTPException:
    return HTTPException(status_code=err.http_status, detail=str(err))

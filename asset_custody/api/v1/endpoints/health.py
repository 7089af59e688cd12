from __future__ import annotations

from fastapi import APIRouter, Depends

from asset_custody.core.config import settings
from asset_custody.core.dependencies import get_current_actor
from asset_custody.models.auth import Actor
from asset_custody.services.asset_store import asset_store

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    services: dict[str, str] = {}

    if asset_store.initialized:
        ok = await asset_store.check_connection()
        services["cosmos_db"] = "ok" if ok else "error"
    else:
        services["cosmos_db"] = "not_configured"

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
    }


@router.get("/protected")
async def health_protected(actor: Actor = Depends(get_current_actor)):
    return {"status": "ok", "actor": actor.model_dump(), "role": actor.role}


@router.get("/ready")
async def readiness_probe():
    return {"ready": True}

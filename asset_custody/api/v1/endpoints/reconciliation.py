from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from asset_custody.core.dependencies import get_reconciliation_sweep, require_role, to_http_exception
from asset_custody.core.errors import AssetCustodyError
from asset_custody.models.auth import Actor
from asset_custody.models.ownership import ReconcileResult
from asset_custody.services.reconciliation import ReconciliationSweep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


@router.post("/{kind}", response_model=ReconcileResult)
async def reconcile(
    kind: str,
    dry_run: bool = False,
    actor: Actor = Depends(require_role("admin")),  # noqa: B008
    sweep: ReconciliationSweep = Depends(get_reconciliation_sweep),  # noqa: B008
):
    logger.info("Reconciliation of %s requested by actor=%s (dry_run=%s)", kind, actor.id, dry_run)
    try:
        return await sweep.reconcile_assignment_status(kind, dry_run=dry_run)
    except AssetCustodyError as err:
        raise to_http_exception(err) from err

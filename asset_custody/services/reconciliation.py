"""Batch repair of assignment drift.

The generic update path can set or clear ``assignedTo`` without touching the
fields that mirror it. This sweep rewrites only those mirror fields, one document
at a time, so it can be cancelled and re-run from the start at any point.
"""

from __future__ import annotations

import logging

from azure.core.exceptions import AzureError

from asset_custody.core.errors import translate_store_errors
from asset_custody.models.asset import AssetKind
from asset_custody.models.ownership import ReconcileResult
from asset_custody.services.asset_store import AssetStore, asset_store
from asset_custody.services.status_policy import mirror_patch, parse_kind

logger = logging.getLogger(__name__)


class ReconciliationSweep:
    def __init__(self, store: AssetStore) -> None:
        self.store = store

    async def reconcile_assignment_status(
        self,
        kind: AssetKind | str = AssetKind.ACCOUNT,
        *,
        dry_run: bool = False,
    ) -> ReconcileResult:
        kind = parse_kind(kind)
        result = ReconcileResult(kind=kind.value)

        with translate_store_errors(f"{kind.value} reconciliation scan"):
            async for document in self.store.find_all_by_kind(kind):
                result.total += 1
                patch = mirror_patch(kind, document)
                if not patch:
                    continue
                if dry_run:
                    result.updated += 1
                    continue
                if await self._repair(kind, document, patch):
                    result.updated += 1
                else:
                    result.skipped += 1

        logger.info(
            "Reconciled %s: %d examined, %d updated, %d skipped%s",
            kind.value,
            result.total,
            result.updated,
            result.skipped,
            " (dry run)" if dry_run else "",
        )
        return result

    async def _repair(self, kind: AssetKind, document: dict, patch: dict[str, str]) -> bool:
        doc_id = document.get("id")
        if not doc_id:
            logger.warning("Skipping %s document without id", kind.value)
            return False
        # Only write if the owner is still what we derived the patch from.
        expected = {"assignedTo": document.get("assignedTo") or None}
        try:
            updated = await self.store.update_one_conditional(kind, doc_id, expected, patch)
        except AzureError:
            logger.exception("Failed to reconcile %s %s, skipping", kind.value, doc_id)
            return False
        if updated is None:
            logger.warning("%s %s changed during reconciliation, skipping", kind.value, doc_id)
            return False
        logger.debug("Reconciled %s %s: %s", kind.value, doc_id, patch)
        return True


reconciliation_sweep = ReconciliationSweep(asset_store)

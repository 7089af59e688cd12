#!/usr/bin/env python3
"""Scheduled repair of assignment drift.

Scans every asset of the selected kind(s) and rewrites the fields that mirror
``assignedTo`` (``assignmentStatus`` for accounts, the usage status for devices
and components) wherever they disagree. Safe to interrupt and re-run. Run from
the repository root:

    python3 scripts/reconcile.py [--kind account|device|component|all] [--dry-run] [--verbose]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from asset_custody.core.config import Settings  # noqa: E402
from asset_custody.core.errors import StoreUnavailableError  # noqa: E402
from asset_custody.models.asset import AssetKind  # noqa: E402
from asset_custody.models.ownership import ReconcileResult  # noqa: E402
from asset_custody.services.asset_store import AssetStore, CosmosAssetStore  # noqa: E402
from asset_custody.services.reconciliation import ReconciliationSweep  # noqa: E402

logger = logging.getLogger(__name__)

KIND_CHOICES = [kind.value for kind in AssetKind] + ["all"]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Repair assignment status drift between asset owners and their status fields",
    )
    parser.add_argument(
        "--kind",
        choices=KIND_CHOICES,
        default=AssetKind.ACCOUNT.value,
        help="Asset kind to reconcile (default: account)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Count drifted documents without writing",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return parser.parse_args(argv)


def selected_kinds(kind: str) -> list[AssetKind]:
    if kind == "all":
        return list(AssetKind)
    return [AssetKind(kind)]


async def run_sweep(store: AssetStore, kinds: list[AssetKind], *, dry_run: bool = False) -> list[ReconcileResult]:
    sweep = ReconciliationSweep(store)
    results: list[ReconcileResult] = []
    for kind in kinds:
        try:
            results.append(await sweep.reconcile_assignment_status(kind, dry_run=dry_run))
        except StoreUnavailableError:
            logger.exception("Reconciliation of %s aborted, continuing with next kind...", kind.value)
    return results


async def reconcile(args: argparse.Namespace) -> int:
    settings = Settings()
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    store = CosmosAssetStore()
    await store.initialize(settings)
    if not store.initialized:
        logger.error("Cosmos DB is not configured. Exiting.")
        return 1

    kinds = selected_kinds(args.kind)
    try:
        results = await run_sweep(store, kinds, dry_run=args.dry_run)
    finally:
        await store.close()

    logger.info("=" * 50)
    for result in results:
        logger.info(
            "%s: %d examined, %d updated, %d skipped",
            result.kind,
            result.total,
            result.updated,
            result.skipped,
        )
    if args.dry_run:
        logger.info("[DRY RUN] No documents were actually written.")
    return 0 if len(results) == len(kinds) else 1


def main() -> None:
    args = parse_args()
    sys.exit(asyncio.run(reconcile(args)))


if __name__ == "__main__":
    main()

"""Ownership invariant checks.

Pure functions: they look only at the asset they are given and never touch the
store. Callers resolve the asset, the requesting employee and, when they want a
readable conflict message, the current owner's display name.
"""

from __future__ import annotations

from asset_custody.models.asset import Asset
from asset_custody.models.ownership import Decision

UNKNOWN_OWNER = "Unknown"

ALREADY_OWNED = "already owned by this employee"
NOT_ASSIGNED_TO_EMPLOYEE = "not assigned to this employee"
NOT_ASSIGNED = "not assigned to any employee"
SELF_MANAGER = "employee cannot be their own manager"


def check_assign(
    asset: Asset,
    requested_owner_id: str,
    current_owner_name: str | None = None,
) -> Decision:
    if not asset.is_assigned:
        return Decision.allow()
    if asset.assigned_to == requested_owner_id:
        return Decision.reject(ALREADY_OWNED)
    return Decision.reject(f"owned by employee {current_owner_name or UNKNOWN_OWNER}")


def check_unassign(asset: Asset, requested_owner_id: str) -> Decision:
    if asset.assigned_to is None or asset.assigned_to != requested_owner_id:
        return Decision.reject(NOT_ASSIGNED_TO_EMPLOYEE)
    return Decision.allow()


def check_release(asset: Asset) -> Decision:
    if not asset.is_assigned:
        return Decision.reject(NOT_ASSIGNED)
    return Decision.allow()


def check_manager(employee_id: str, manager_id: str | None) -> Decision:
    if manager_id and manager_id == employee_id:
        return Decision.reject(SELF_MANAGER)
    return Decision.allow()

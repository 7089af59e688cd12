"""Status policy: which status fields an assign/unassign writes, per asset kind."""

from __future__ import annotations

from typing import Any

from asset_custody.core.errors import InvalidActionError, InvalidKindError
from asset_custody.models.asset import AssetKind
from asset_custody.models.ownership import AssignmentAction

# Unassigning an account forces it back to "active", even from "expired".
_TARGET_STATES: dict[tuple[AssetKind, AssignmentAction], dict[str, str]] = {
    (AssetKind.DEVICE, AssignmentAction.ASSIGN): {"status": "in_use"},
    (AssetKind.DEVICE, AssignmentAction.UNASSIGN): {"status": "available"},
    (AssetKind.COMPONENT, AssignmentAction.ASSIGN): {"status": "in_use"},
    (AssetKind.COMPONENT, AssignmentAction.UNASSIGN): {"status": "available"},
    (AssetKind.ACCOUNT, AssignmentAction.ASSIGN): {"assignmentStatus": "assigned"},
    (AssetKind.ACCOUNT, AssignmentAction.UNASSIGN): {
        "assignmentStatus": "available",
        "status": "active",
    },
}

# Hardware status values that only describe usage; anything else is a lifecycle fact.
_USAGE_STATUSES = frozenset({"available", "in_use"})


def parse_kind(value: AssetKind | str) -> AssetKind:
    if isinstance(value, AssetKind):
        return value
    try:
        return AssetKind(str(value).strip().lower())
    except ValueError as e:
        raise InvalidKindError(value) from e


def parse_action(value: AssignmentAction | str) -> AssignmentAction:
    if isinstance(value, AssignmentAction):
        return value
    try:
        return AssignmentAction(str(value).strip().lower())
    except ValueError as e:
        raise InvalidActionError(value) from e


def target_state(kind: AssetKind | str, action: AssignmentAction | str) -> dict[str, str]:
    """Return the camelCase status fields to write for ``action`` on an asset of ``kind``."""
    return dict(_TARGET_STATES[(parse_kind(kind), parse_action(action))])


def is_owner_set(document: dict[str, Any]) -> bool:
    owner = document.get("assignedTo")
    if isinstance(owner, str):
        return bool(owner.strip())
    return owner is not None


def mirror_patch(kind: AssetKind | str, document: dict[str, Any]) -> dict[str, str]:
    """Fields to write so the assignment mirror of ``document`` agrees with its owner.

    Returns an empty dict when the document is already consistent.
    """
    kind = parse_kind(kind)
    assigned = is_owner_set(document)

    if kind is AssetKind.ACCOUNT:
        expected = "assigned" if assigned else "available"
        if document.get("assignmentStatus") != expected:
            return {"assignmentStatus": expected}
        return {}

    status = document.get("status")
    if status not in _USAGE_STATUSES:
        return {}
    expected = "in_use" if assigned else "available"
    if status != expected:
        return {"status": expected}
    return {}

"""Decision and request/response models for ownership operations."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AssignmentAction(str, Enum):
    ASSIGN = "assign"
    UNASSIGN = "unassign"


class Decision(BaseModel):
    """Outcome of an ownership or deletion check."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def reject(cls, reason: str) -> Decision:
        return cls(allowed=False, reason=reason)


class AssignmentRequest(BaseModel):
    """Body of the employee assign endpoint, camelCase as sent by the UI."""

    model_config = ConfigDict(populate_by_name=True)

    action: str = Field(..., min_length=1)
    asset_type: str = Field(..., min_length=1, alias="assetType")
    asset_id: str = Field(..., min_length=1, alias="assetId")


class AssignmentResponse(BaseModel):
    success: bool = True
    message: str
    data: dict[str, Any]


class ReconcileResult(BaseModel):
    kind: str
    total: int = 0
    updated: int = 0
    skipped: int = 0

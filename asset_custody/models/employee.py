"""Employee model for Cosmos DB employee documents."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import field_validator

from asset_custody.models.asset import StoredDocument, blank_to_none


class Employee(StoredDocument):
    name: str
    employee_id: str | None = None
    email: str | None = None
    department: str | None = None
    position: str | None = None
    phone: str | None = None
    status: Literal["active", "inactive", "on_leave"] = "active"
    join_date: str | None = None
    leave_date: str | None = None
    manager: str | None = None
    notes: str | None = None

    @field_validator("manager", mode="before")
    @classmethod
    def _empty_manager_is_none(cls, value: Any) -> Any:
        return blank_to_none(value)

"""Asset models for device, component and account documents."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer
from pydantic.alias_generators import to_camel


class AssetKind(str, Enum):
    DEVICE = "device"
    COMPONENT = "component"
    ACCOUNT = "account"


EMPLOYEE_COLLECTION = "employee"

HardwareStatus = Literal["available", "in_use", "under_repair", "disposed"]
AccountStatus = Literal["active", "inactive", "expired"]
AssignmentStatus = Literal["available", "assigned"]


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class StoredDocument(BaseModel):
    """Base for Cosmos DB documents: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str
    created_at: str | None = None
    updated_at: str | None = None

    @model_serializer(mode="wrap")
    def _drop_system_properties(self, handler):
        # Cosmos adds _rid, _self, _etag, _ts and _attachments to every document.
        return {key: value for key, value in handler(self).items() if not key.startswith("_")}


class Asset(StoredDocument):
    name: str | None = None
    type: str | None = None
    sub_type: str | None = None
    category: str | None = None
    status: str
    assigned_to: str | None = None
    notes: str | None = None

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _empty_owner_is_unassigned(cls, value: Any) -> Any:
        return blank_to_none(value)

    @property
    def is_assigned(self) -> bool:
        return self.assigned_to is not None


class HardwareAsset(Asset):
    serial_number: str | None = None
    manufacturer: str | None = None
    model: str | None = None
    location: str | None = None
    status: HardwareStatus = "available"

    @field_validator("status", mode="before")
    @classmethod
    def _blank_status_is_available(cls, value: Any) -> Any:
        return blank_to_none(value) or "available"


class Device(HardwareAsset):
    pass


class Component(HardwareAsset):
    installed_in: str | None = None

    @field_validator("installed_in", mode="before")
    @classmethod
    def _empty_device_is_uninstalled(cls, value: Any) -> Any:
        return blank_to_none(value)


class Account(Asset):
    username: str | None = None
    url: str | None = None
    status: AccountStatus = "active"
    assignment_status: AssignmentStatus = "available"

    # Credentials are read from the store but never serialized back out.
    password: str | None = Field(default=None, exclude=True)
    api_key: str | None = Field(default=None, exclude=True)
    access_token: str | None = Field(default=None, exclude=True)
    refresh_token: str | None = Field(default=None, exclude=True)

    @field_validator("status", mode="before")
    @classmethod
    def _blank_status_is_active(cls, value: Any) -> Any:
        return blank_to_none(value) or "active"

    # Generic edits can clear the mirror; the sweep or the next assignment rewrites it.
    @field_validator("assignment_status", mode="before")
    @classmethod
    def _blank_assignment_status_is_available(cls, value: Any) -> Any:
        return blank_to_none(value) or "available"


ASSET_MODELS: dict[AssetKind, type[Asset]] = {
    AssetKind.DEVICE: Device,
    AssetKind.COMPONENT: Component,
    AssetKind.ACCOUNT: Account,
}


def parse_asset(kind: AssetKind, document: dict[str, Any]) -> Asset:
    return ASSET_MODELS[kind].model_validate(document)


class OwnedAssets(BaseModel):
    """Computed forward list of everything an employee currently holds."""

    employee_id: str
    devices: list[Device] = []
    components: list[Component] = []
    accounts: list[Account] = []

    @property
    def total(self) -> int:
        return len(self.devices) + len(self.components) + len(self.accounts)

"""Actor models resolved from Azure AD bearer tokens."""

from __future__ import annotations

from pydantic import BaseModel

# Strongest first.
ROLE_PRECEDENCE: tuple[str, ...] = ("admin", "manager", "user")


class Actor(BaseModel):
    id: str | None = None
    name: str | None = None
    email: str | None = None
    roles: list[str] = []

    @property
    def role(self) -> str | None:
        for candidate in ROLE_PRECEDENCE:
            if candidate in self.roles:
                return candidate
        return None

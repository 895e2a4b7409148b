from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator, model_validator

from .base import ApiModel, ensure_utc


class Permission(ApiModel):
    id: int | None = None
    name: str = ""
    resource: str
    actions: tuple[str, ...] = ()
    description: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _single_action(cls, data: Any) -> Any:
        # Some payloads carry a single ``action`` instead of an ``actions`` list
        if isinstance(data, dict) and "actions" not in data and "action" in data:
            data = {**data, "actions": [data["action"]]}
        return data

    def allows(self, resource: str, action: str) -> bool:
        if self.resource.upper() != resource.upper():
            return False
        wanted = action.upper()
        return any(a.upper() in (wanted, "*", "ALL") for a in self.actions)


class Role(ApiModel):
    id: int | None = None
    name: str
    description: str | None = None
    permissions: list[Permission] = Field(default_factory=list)


class User(ApiModel):
    id: int
    username: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    roles: list[Role] = Field(default_factory=list)
    permissions: list[Permission] = Field(default_factory=list)
    is_active: bool = True
    last_login: datetime | None = None

    @field_validator("last_login", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> Any:
        return ensure_utc(v)

    @property
    def full_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.username

    def all_permissions(self) -> list[Permission]:
        perms = list(self.permissions)
        for role in self.roles:
            perms.extend(role.permissions)
        return perms


class AuthTokens(ApiModel):
    token: str
    refresh_token: str | None = None
    expires_in: int | None = Field(default=None, ge=0)


class AuthSession(AuthTokens):
    user: User

"""Tenant, user and tag references owned by external collaborators."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class Role(StrEnum):
    VISITOR = "visitor"
    COLLABORATOR = "collaborator"
    ADMINISTRATOR = "administrator"


class Tenant(BaseModel):
    """An isolated organization hosting its own ideas, users and tags."""

    id: int
    name: str
    subdomain: str


class User(BaseModel):
    """An acting user as seen by the idea engine."""

    id: int
    name: str
    email: str | None = None
    role: Role = Role.VISITOR

    @property
    def is_collaborator(self) -> bool:
        return self.role in (Role.COLLABORATOR, Role.ADMINISTRATOR)

    def to_response(self) -> dict:
        return {"id": self.id, "name": self.name, "role": str(self.role)}


class Tag(BaseModel):
    id: int
    name: str
    slug: str
    color: str = "FFFFFF"
    is_public: bool = True

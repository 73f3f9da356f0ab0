"""Comment model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from ideaboard.models.account import Role, User


class Comment(BaseModel):
    """An immutable comment on an idea."""

    id: int
    content: str
    created_on: datetime
    user: User

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Comment:
        return cls(
            id=row["id"],
            content=row["content"],
            created_on=row["created_on"],
            user=User(
                id=row["user_id"],
                name=row["user_name"],
                email=row["user_email"],
                role=Role(row["user_role"]),
            ),
        )

    def to_response(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "created_on": self.created_on.isoformat(),
            "user": self.user.to_response(),
        }

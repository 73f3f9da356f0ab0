"""Idea model and its projections.

An ``Idea`` is always built from a storage row through ``Idea.from_row``; the
optional response and original sections are decided there and nowhere else.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field

from ideaboard.core.ranking import calculate_ranking
from ideaboard.models.account import Role, User


class IdeaStatus(IntEnum):
    """Published status codes. Values must never be renumbered."""

    NEW = 0
    STARTED = 1
    COMPLETED = 2
    DECLINED = 3
    PLANNED = 4
    DUPLICATE = 5


class OriginalIdea(BaseModel):
    """Snapshot of the idea a duplicate was merged into."""

    number: int
    title: str
    slug: str
    status: IdeaStatus


class IdeaResponse(BaseModel):
    text: str
    responded_on: datetime
    user: User | None = None
    original: OriginalIdea | None = None


class BasicIdea(BaseModel):
    """Reduced projection for list views."""

    id: int
    number: int
    title: str
    slug: str
    total_supporters: int = 0
    status: IdeaStatus = IdeaStatus.NEW

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> BasicIdea:
        return cls(
            id=row["id"],
            number=row["number"],
            title=row["title"],
            slug=row["slug"],
            total_supporters=row["supporters"],
            status=IdeaStatus(row["status"]),
        )

    def to_response(self) -> dict:
        return {
            "id": self.id,
            "number": self.number,
            "title": self.title,
            "slug": self.slug,
            "total_supporters": self.total_supporters,
            "status": self.status.name.lower(),
        }


class Idea(BaseModel):
    """A user-submitted idea with engagement counters and optional response."""

    id: int
    number: int
    title: str
    slug: str
    description: str = ""
    created_on: datetime
    user: User | None = None
    total_supporters: int = 0
    total_comments: int = 0
    status: IdeaStatus = IdeaStatus.NEW
    response: IdeaResponse | None = None
    tags: list[int] = Field(default_factory=list)
    ranking: float = 0.0
    viewer_supported: bool | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any], *, now: datetime | None = None) -> Idea:
        """Map a joined idea row to an Idea, computing its ranking at ``now``."""
        created_on = _parse_timestamp(row["created_on"])
        status = IdeaStatus(row["status"])

        response = None
        if row.get("response") is not None:
            original = None
            if status == IdeaStatus.DUPLICATE and row.get("original_number") is not None:
                original = OriginalIdea(
                    number=row["original_number"],
                    title=row["original_title"],
                    slug=row["original_slug"],
                    status=IdeaStatus(row["original_status"]),
                )
            response = IdeaResponse(
                text=row["response"],
                responded_on=_parse_timestamp(row["response_date"]),
                user=_user_from_row(row, "response_user_"),
                original=original,
            )

        viewer_supported = row.get("viewer_supported")
        return cls(
            id=row["id"],
            number=row["number"],
            title=row["title"],
            slug=row["slug"],
            description=row["description"] or "",
            created_on=created_on,
            user=_user_from_row(row, "user_"),
            total_supporters=row["supporters"],
            total_comments=row["comments"],
            status=status,
            response=response,
            tags=_parse_tags(row.get("tags")),
            ranking=calculate_ranking(
                row["recent_supporters"],
                row["recent_comments"],
                created_on,
                now=now,
            ),
            viewer_supported=None if viewer_supported is None else bool(viewer_supported),
        )

    def to_response(self, *, detail: str = "summary") -> dict:
        data: dict[str, Any] = {
            "_v": "1.0",
            "id": self.id,
            "number": self.number,
            "title": self.title,
            "slug": self.slug,
            "status": self.status.name.lower(),
            "total_supporters": self.total_supporters,
            "total_comments": self.total_comments,
            "ranking": round(self.ranking, 6),
        }
        if self.viewer_supported is not None:
            data["viewer_supported"] = self.viewer_supported
        if detail != "summary":
            data.update(
                {
                    "description": self.description,
                    "created_on": self.created_on.isoformat(),
                    "user": self.user.to_response() if self.user else None,
                    "tags": self.tags,
                    "response": _response_to_dict(self.response),
                }
            )
        return data


def _parse_timestamp(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _parse_tags(value: str | list[int] | None) -> list[int]:
    if value is None:
        return []
    if isinstance(value, str):
        value = json.loads(value)
    return sorted(int(v) for v in value if v is not None)


def _user_from_row(row: dict[str, Any], prefix: str) -> User | None:
    user_id = row.get(f"{prefix}id")
    if user_id is None:
        return None
    return User(
        id=user_id,
        name=row[f"{prefix}name"],
        email=row.get(f"{prefix}email"),
        role=Role(row[f"{prefix}role"]),
    )


def _response_to_dict(response: IdeaResponse | None) -> dict | None:
    if response is None:
        return None
    data: dict[str, Any] = {
        "text": response.text,
        "responded_on": response.responded_on.isoformat(),
        "user": response.user.to_response() if response.user else None,
    }
    if response.original is not None:
        data["original"] = {
            "number": response.original.number,
            "title": response.original.title,
            "slug": response.original.slug,
            "status": response.original.status.name.lower(),
        }
    return data

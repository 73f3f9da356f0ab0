"""Ideaboard data models."""

from ideaboard.models.account import Role, Tag, Tenant, User
from ideaboard.models.comment import Comment
from ideaboard.models.idea import BasicIdea, Idea, IdeaResponse, IdeaStatus, OriginalIdea

__all__ = [
    "BasicIdea",
    "Comment",
    "Idea",
    "IdeaResponse",
    "IdeaStatus",
    "OriginalIdea",
    "Role",
    "Tag",
    "Tenant",
    "User",
]

"""Event type constants for Ideaboard."""

from enum import StrEnum


class EventType(StrEnum):
    IDEA_CREATED = "idea.created"
    IDEA_UPDATED = "idea.updated"
    IDEA_TAGGED = "idea.tagged"
    IDEA_UNTAGGED = "idea.untagged"

    IDEA_SUPPORTED = "idea.supported"
    IDEA_UNSUPPORTED = "idea.unsupported"

    IDEA_RESPONDED = "idea.responded"
    IDEA_DUPLICATED = "idea.duplicated"

    COMMENT_ADDED = "comment.added"

"""Idea status state machine.

Status changes happen through two operations: a response (any status except
duplicate) and a merge (duplicate only). All checks go through
``validate_transition``.
"""

import logging
from enum import StrEnum

from ideaboard.errors import InvalidTransitionError
from ideaboard.models.idea import IdeaStatus

logger = logging.getLogger(__name__)


class Operation(StrEnum):
    RESPOND = "respond"
    MERGE = "merge"


_RESPONSE_TARGETS: set[IdeaStatus] = {s for s in IdeaStatus if s != IdeaStatus.DUPLICATE}

# Allowed transitions per operation: source status -> target statuses
TRANSITIONS: dict[Operation, dict[IdeaStatus, set[IdeaStatus]]] = {
    Operation.RESPOND: {source: set(_RESPONSE_TARGETS) for source in IdeaStatus},
    Operation.MERGE: {source: {IdeaStatus.DUPLICATE} for source in IdeaStatus},
}

# Statuses from which supporters can still be added or removed
SUPPORTABLE: frozenset[IdeaStatus] = frozenset(
    {IdeaStatus.NEW, IdeaStatus.STARTED, IdeaStatus.PLANNED}
)


def is_supportable(status: IdeaStatus) -> bool:
    return status in SUPPORTABLE


def validate_transition(operation: Operation, from_status: IdeaStatus, to_status: IdeaStatus) -> None:
    """Validate a status transition for the given operation.

    Raises:
        InvalidTransitionError: If the operation cannot move an idea from
            ``from_status`` to ``to_status``.
    """
    allowed = TRANSITIONS[operation].get(from_status, set())
    if to_status in allowed:
        return

    logger.warning(
        "Rejected %s transition from %s to %s", operation, from_status.name, to_status.name
    )
    if operation == Operation.RESPOND and to_status == IdeaStatus.DUPLICATE:
        raise InvalidTransitionError(
            "Use mark_as_duplicate to change an idea status to duplicate"
        )
    raise InvalidTransitionError(
        f"Invalid status transition from '{from_status.name.lower()}' to "
        f"'{to_status.name.lower()}' via {operation}. "
        f"Allowed targets: {sorted(s.name.lower() for s in allowed)}"
    )


def validate_target(operation: Operation, to_status: IdeaStatus) -> None:
    """Reject a target status no source can reach through ``operation``.

    Lets callers fail before resolving the idea itself.
    """
    reachable = set().union(*TRANSITIONS[operation].values())
    if to_status in reachable:
        return
    logger.warning("Rejected %s to %s", operation, to_status.name)
    if operation == Operation.RESPOND and to_status == IdeaStatus.DUPLICATE:
        raise InvalidTransitionError(
            "Use mark_as_duplicate to change an idea status to duplicate"
        )
    raise InvalidTransitionError(f"Status '{to_status.name.lower()}' cannot be set via {operation}")

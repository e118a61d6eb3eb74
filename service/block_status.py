"""
Block status lifecycle: scheduled -> in-progress -> completed, or skipped.
"""
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional

from models.schemas import StudyBlock
from service.exceptions import InvalidStatusTransition

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "scheduled": frozenset({"in-progress", "skipped"}),
    "in-progress": frozenset({"completed", "skipped"}),
    "completed": frozenset(),
    "skipped": frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def transition_block(block: StudyBlock, status: str, now: Optional[datetime] = None) -> StudyBlock:
    """
    Move a block to a new status.

    Returns:
        Updated copy of the block with a fresh updated_at

    Raises:
        InvalidStatusTransition: if the move is not allowed from the current status
    """
    if block.is_break:
        raise InvalidStatusTransition("Breaks have no status lifecycle")
    if not can_transition(block.status, status):
        raise InvalidStatusTransition(f"Cannot move block {block.id} from '{block.status}' to '{status}'")
    return block.model_copy(update={
        "status": status,
        "updated_at": now or datetime.now(timezone.utc),
    })

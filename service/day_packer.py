"""
Single-day packer.

Fills one day's window greedily with back-to-back study blocks taken from
the rotation cursor, with breaks between them.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Tuple

from models.schemas import StudyBlock, TimeWindow
from service.labels import block_description, block_display_title
from service.time_utils import minutes_to_time, time_to_minutes
from service.weights import RotationCursor, SubjectWeight, session_kind

logger = logging.getLogger(__name__)

MIN_BLOCK_MINUTES = 30


@dataclass
class DayPlan:
    """Blocks placed on one day plus the cursor to carry into the next."""
    blocks: List[StudyBlock]
    cursor: RotationCursor
    study_minutes: int


def block_id(day: date, seq: int) -> str:
    return f"{day:%Y%m%d}-{seq:03d}"


def build_block(
    day: date,
    seq: int,
    start: int,
    minutes: int,
    stamp: datetime,
    subject_id: Optional[str] = None,
    subject_name: Optional[str] = None,
    block_type: Optional[str] = None,
    goal: str = "enem",
    **extra,
) -> StudyBlock:
    """Create a scheduled study block starting at `start` minutes past midnight."""
    return StudyBlock(
        id=block_id(day, seq),
        subject_id=subject_id,
        subject_name=subject_name,
        date=day,
        start_time=minutes_to_time(start),
        end_time=minutes_to_time(start + minutes),
        duration_minutes=minutes,
        is_break=False,
        block_type=block_type,
        status="scheduled",
        title=block_display_title(subject_name, block_type),
        description=block_description(block_type, goal, subject_name),
        created_at=stamp,
        updated_at=stamp,
        **extra,
    )


def build_break(day: date, seq: int, start: int, minutes: int, stamp: datetime) -> StudyBlock:
    return StudyBlock(
        id=block_id(day, seq),
        date=day,
        start_time=minutes_to_time(start),
        end_time=minutes_to_time(start + minutes),
        duration_minutes=minutes,
        is_break=True,
        status="scheduled",
        title=block_display_title(None, None, is_break=True),
        created_at=stamp,
        updated_at=stamp,
    )


def _next_placement(
    cursor: RotationCursor,
    room: int,
    max_block_minutes: int,
    min_block_minutes: int,
) -> Tuple[Optional[SubjectWeight], int, RotationCursor]:
    """Take the first subject in the queue that can fill a viable block."""
    for candidate in cursor.queue():
        remaining = cursor.remaining[candidate.subject_id]
        length = min(max_block_minutes, remaining, room)
        if length >= min_block_minutes:
            return candidate, length, cursor
        if remaining < min_block_minutes:
            cursor = cursor.forfeit(candidate.subject_id)
    return None, 0, cursor


def _can_place_after(
    cursor: RotationCursor,
    room: int,
    max_block_minutes: int,
    min_block_minutes: int,
) -> bool:
    if room < min_block_minutes:
        return False
    return any(
        min(max_block_minutes, cursor.remaining[w.subject_id], room) >= min_block_minutes
        for w in cursor.queue()
    )


def pack_day(
    day: date,
    window: TimeWindow,
    max_block_minutes: int,
    break_minutes: int,
    cursor: RotationCursor,
    stamp: datetime,
    min_block_minutes: int = MIN_BLOCK_MINUTES,
    daily_budget: Optional[int] = None,
    goal: str = "enem",
) -> DayPlan:
    """
    Pack study blocks into one day's window.

    Each block lasts min(max block, subject need, window left, budget left).
    A day ends once the window or budget left is below the minimum viable
    block. A subject whose residual need is below the minimum is dropped
    for the range instead of getting a fragment.

    Args:
        day: Calendar date being packed
        window: Effective [start, end) window for the day
        max_block_minutes: Longest allowed study block
        break_minutes: Break inserted between consecutive study blocks
        cursor: Rotation state coming from the previous day
        stamp: Timestamp for created_at/updated_at
        min_block_minutes: Shortest block worth placing
        daily_budget: Optional cap on study minutes for the day

    Returns:
        DayPlan with the day's blocks and the advanced cursor
    """
    start = time_to_minutes(window.start)
    end = time_to_minutes(window.end)
    if end <= start:
        return DayPlan(blocks=[], cursor=cursor, study_minutes=0)

    budget = end - start if daily_budget is None else max(0, min(daily_budget, end - start))

    blocks: List[StudyBlock] = []
    current = start
    used = 0
    seq = 0

    while True:
        room = min(end - current, budget - used)
        if room < min_block_minutes:
            break

        chosen, length, cursor = _next_placement(cursor, room, max_block_minutes, min_block_minutes)
        if chosen is None:
            break

        kind = session_kind(chosen.level, cursor.session_index(chosen.subject_id))
        blocks.append(build_block(
            day, seq, current, length, stamp,
            subject_id=chosen.subject_id,
            subject_name=chosen.name,
            block_type=kind,
            goal=goal,
        ))
        seq += 1
        cursor = cursor.advance(chosen.subject_id, length)
        current += length
        used += length

        # Break only between two study blocks
        if break_minutes > 0:
            room_after_break = min(end - current - break_minutes, budget - used)
            if _can_place_after(cursor, room_after_break, max_block_minutes, min_block_minutes):
                blocks.append(build_break(day, seq, current, break_minutes, stamp))
                seq += 1
                current += break_minutes

    logger.debug(f"Packed {day.isoformat()}: {used} study minutes in {len(blocks)} blocks")
    return DayPlan(blocks=blocks, cursor=cursor, study_minutes=used)

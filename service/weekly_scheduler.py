"""
Range scheduler.

Walks the calendar from start to end, skips excluded weekdays and runs the
single-day packer on every other day, threading the rotation cursor from
one day into the next.
"""
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from models.schemas import ScheduleConfig, ScheduleResult, StudyBlock, Subject, TimeWindow
from service.day_packer import MIN_BLOCK_MINUTES, pack_day
from service.exceptions import ScheduleValidationError
from service.time_utils import date_range, get_week_start, time_to_minutes, weekday_index
from service.weights import RotationCursor, resolve_subject_weights

logger = logging.getLogger(__name__)


def resolve_range(config: ScheduleConfig, today: Optional[date] = None) -> Tuple[date, date]:
    """
    Resolve the inclusive date range to schedule.

    Defaults to the week (Monday..Sunday) containing `today`.

    Raises:
        ScheduleValidationError: if the end date precedes the start date
    """
    start = config.start_date or get_week_start(today or date.today())
    end = config.end_date or start + timedelta(days=6)
    if end < start:
        raise ScheduleValidationError(
            f"End date ({end.isoformat()}) must not be before start date ({start.isoformat()})"
        )
    return start, end


def effective_window(config: ScheduleConfig, day: date) -> TimeWindow:
    """The per-date window override when it is usable, else the preferred window."""
    override = config.daily_time_window_by_date.get(day)
    if override and time_to_minutes(override.end) > time_to_minutes(override.start):
        return override
    return TimeWindow(start=config.preferred_start, end=config.preferred_end)


def validate_inputs(subjects: Sequence[Subject], config: ScheduleConfig) -> None:
    """Reject input no scheduler can work with."""
    if not subjects:
        raise ScheduleValidationError("No subjects provided")
    time_to_minutes(config.preferred_start)
    time_to_minutes(config.preferred_end)


def summarize_schedule(
    blocks: List[StudyBlock],
    phase_by_date: Optional[Dict[str, str]] = None,
    debug_log: Optional[List[str]] = None,
) -> ScheduleResult:
    """Sort blocks chronologically and compute the aggregate figures."""
    ordered = sorted(blocks, key=lambda b: (b.date, b.start_time))

    study_minutes = 0
    minutes_by_subject: Dict[str, int] = defaultdict(int)
    for block in ordered:
        if block.is_break:
            continue
        study_minutes += block.duration_minutes
        if block.subject_id:
            minutes_by_subject[block.subject_id] += block.duration_minutes

    return ScheduleResult(
        blocks=ordered,
        total_hours=round(study_minutes / 60, 1),
        subject_distribution={
            subject_id: round(minutes / 60, 2) for subject_id, minutes in minutes_by_subject.items()
        },
        phase_by_date=phase_by_date or {},
        debug_log=debug_log or [],
    )


def generate_weekly_schedule(
    subjects: Sequence[Subject],
    config: ScheduleConfig,
    today: Optional[date] = None,
    generated_at: Optional[datetime] = None,
) -> ScheduleResult:
    """
    Generate study blocks for every included day of the range.

    Subject needs refill at each Monday after the first day of the range,
    so a multi-week range gets each subject's weekly target once per week.
    Subjects with no remaining target hours are never scheduled.

    Args:
        subjects: Subjects to rotate through (inactive ones are ignored)
        config: Windows, block/break lengths, excluded days and range
        today: Reference day for the default range
        generated_at: Timestamp stamped on the blocks

    Returns:
        ScheduleResult with chronologically ordered blocks and total hours

    Raises:
        ScheduleValidationError: on empty subjects, bad times or inverted range
    """
    validate_inputs(subjects, config)
    start, end = resolve_range(config, today)
    stamp = generated_at or datetime.now(timezone.utc)

    weights = resolve_subject_weights(subjects, config.max_block_minutes)
    cursor = RotationCursor.start(weights)
    excluded = set(config.exclude_days)

    blocks: List[StudyBlock] = []
    for day in date_range(start, end):
        if day != start and day.weekday() == 0:
            cursor = cursor.start_week()

        if weekday_index(day) in excluded:
            continue

        budget = config.daily_limit_by_date.get(day)
        if budget is None and config.hours_per_day is not None:
            budget = int(round(config.hours_per_day * 60))

        plan = pack_day(
            day,
            effective_window(config, day),
            config.max_block_minutes,
            config.break_minutes,
            cursor,
            stamp,
            min_block_minutes=MIN_BLOCK_MINUTES,
            daily_budget=budget,
            goal=config.goal,
        )
        blocks.extend(plan.blocks)
        cursor = plan.cursor

    result = summarize_schedule(blocks)
    logger.info(
        f"Weekly schedule {start.isoformat()}..{end.isoformat()}: "
        f"{sum(1 for b in result.blocks if not b.is_break)} study blocks, {result.total_hours}h"
    )
    return result

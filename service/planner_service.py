"""
Study planner service.

Turns HTTP study preferences into core scheduler configs, runs the
weekly or chronological scheduler and wraps the outcome into a
ScheduleResponse with status and error messages.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from models.schemas import (
    ChronologicalScheduleConfig, ChronologicalScheduleRequest, ErrorMessage, ExamRulesRequest,
    ExamRulesResponse, Messages, ScheduleConfig, ScheduleMeta, ScheduleRange, ScheduleResponse,
    ScheduleResult, StudyPreferences, TimeWindow, WeeklyScheduleRequest
)
from service.chronological_scheduler import ChronologicalScheduler
from service.exam_rules import days_until, resolve_exam_rules
from service.exceptions import ScheduleValidationError
from service.schedule_cache import ScheduleCache
from service.time_utils import (
    MINUTES_PER_DAY, date_range, get_week_start, minutes_to_time, time_to_minutes, weekday_index
)
from service.weekly_scheduler import generate_weekly_schedule

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_MINUTES = 90
MIN_REQUEST_BLOCK_MINUTES = 25
DEFAULT_BREAK_MINUTES = 10
MIN_REQUEST_BREAK_MINUTES = 5
DEFAULT_EXCLUDED_DAYS = [0]  # Sunday


class StudyPlannerService:
    """Normalizes requests and runs the schedulers."""

    def __init__(self, cache: Optional[ScheduleCache] = None, clamp_inverted_range: bool = False, debug: bool = False):
        """
        Initialize the service.

        Args:
            cache: Memoization cache for chronological schedules, None disables caching
            clamp_inverted_range: Move an end date before the start to start + 6 days
                instead of rejecting the request
            debug: Collect the per-day debug log in chronological runs
        """
        self.cache = cache
        self.clamp_inverted_range = clamp_inverted_range
        self.debug = debug

    def weekly_schedule(self, request: WeeklyScheduleRequest, today: Optional[date] = None) -> ScheduleResponse:
        """Generate a weekly (range) schedule for the request."""
        started = datetime.now()
        try:
            today = today or date.today()
            start, end = self._resolve_range(request, today)
            config = ScheduleConfig(**self._build_config(request, start, end, today))
            result = generate_weekly_schedule(request.subjects, config, today=today)
            solve_time = (datetime.now() - started).total_seconds()
            return self._create_response(result, start, end, solve_time)

        except ScheduleValidationError as e:
            logger.warning(f"Invalid weekly schedule request: {e}")
            return self._create_invalid_response(str(e))
        except Exception as e:
            logger.error(f"Weekly scheduling error: {str(e)}", exc_info=True)
            return self._create_error_response(str(e))

    def chronological_schedule(self, request: ChronologicalScheduleRequest, today: Optional[date] = None) -> ScheduleResponse:
        """Generate an exam-aware chronological schedule for the request."""
        started = datetime.now()
        try:
            today = today or date.today()
            start, end = self._resolve_range(request, today)
            values = self._build_config(request, start, end, today)
            values["daily_limit_by_date"].update(request.daily_limits)

            prefs = request.preferences
            config = ChronologicalScheduleConfig(
                **values,
                first_cycle_all_subjects=request.first_cycle_all_subjects,
                completed_lessons_total=request.completed_lessons_total,
                completed_lessons_by_subject=request.completed_lessons_by_subject,
                completed_practice_total=request.completed_practice_total,
                completed_practice_by_subject=request.completed_practice_by_subject,
                exam_rules=request.exam_rules or resolve_exam_rules(
                    prefs.goal, prefs.intensity, days_until(prefs.exam_date, today)
                ),
                enable_cache=self.cache is not None,
                debug=self.debug,
            )

            scheduler = ChronologicalScheduler(cache=self.cache)
            result = scheduler.generate(request.subjects, config, today=today)
            solve_time = (datetime.now() - started).total_seconds()
            return self._create_response(result, start, end, solve_time)

        except ScheduleValidationError as e:
            logger.warning(f"Invalid chronological schedule request: {e}")
            return self._create_invalid_response(str(e))
        except Exception as e:
            logger.error(f"Chronological scheduling error: {str(e)}", exc_info=True)
            return self._create_error_response(str(e))

    def exam_rules(self, request: ExamRulesRequest) -> ExamRulesResponse:
        remaining = days_until(request.exam_date, request.today or date.today())
        return ExamRulesResponse(
            rules=resolve_exam_rules(request.goal, request.intensity, remaining),
            days_to_exam=remaining,
        )

    # ===========================
    # Request Normalization
    # ===========================

    def _resolve_range(self, request: WeeklyScheduleRequest, today: date) -> Tuple[date, date]:
        """Explicit range, else the preferred start date, else the current week."""
        if request.schedule_range is not None:
            start = request.schedule_range.start_date
            end = request.schedule_range.end_date
        else:
            start = request.preferences.start_date or get_week_start(today)
            end = start + timedelta(days=6)

        if end < start and self.clamp_inverted_range:
            logger.info(f"Clamping inverted range {start.isoformat()}..{end.isoformat()}")
            end = start + timedelta(days=6)
        return start, end

    def _excluded_days(self, prefs: StudyPreferences) -> List[int]:
        active = None
        if prefs.daily_hours_by_weekday:
            active = {day for day, hours in prefs.daily_hours_by_weekday.items() if hours > 0}
        elif prefs.days_of_week is not None:
            active = set(prefs.days_of_week)

        if active:
            return [day for day in range(7) if day not in active]
        if prefs.exclude_days is not None:
            return list(prefs.exclude_days)
        return list(DEFAULT_EXCLUDED_DAYS)

    def _daily_limits(self, prefs: StudyPreferences, start: date, end: date) -> Dict[date, int]:
        """Per-date study minutes from per-weekday hours, falling back to hours per day."""
        by_weekday = prefs.daily_hours_by_weekday or {}
        limits = {}
        for day in date_range(start, end):
            hours = by_weekday.get(weekday_index(day), prefs.hours_per_day)
            limits[day] = int(round(max(0.0, hours) * 60))
        return limits

    def _daily_windows(self, prefs: StudyPreferences, start: date, end: date) -> Dict[date, TimeWindow]:
        by_weekday = prefs.daily_window_by_weekday or {}
        windows = {}
        if not by_weekday:
            return windows
        for day in date_range(start, end):
            window = by_weekday.get(weekday_index(day))
            if window and time_to_minutes(window.end) > time_to_minutes(window.start):
                windows[day] = window
        return windows

    def _preferred_end(self, prefs: StudyPreferences) -> str:
        if prefs.preferred_end:
            return prefs.preferred_end
        start = time_to_minutes(prefs.preferred_start)
        span = max(60, int(round(prefs.hours_per_day * 60)))
        return minutes_to_time(min(start + span, MINUTES_PER_DAY - 1))

    def _build_config(self, request: WeeklyScheduleRequest, start: date, end: date, today: date) -> Dict:
        """Common ScheduleConfig fields for both scheduler variants."""
        prefs = request.preferences
        max_block = prefs.max_block_minutes if prefs.max_block_minutes is not None else DEFAULT_BLOCK_MINUTES
        break_minutes = prefs.break_minutes if prefs.break_minutes is not None else DEFAULT_BREAK_MINUTES

        # Windows and limits are only computed for a well-formed range
        ordered = end >= start
        return {
            "preferred_start": prefs.preferred_start,
            "preferred_end": self._preferred_end(prefs),
            "max_block_minutes": max(MIN_REQUEST_BLOCK_MINUTES, max_block),
            "break_minutes": max(MIN_REQUEST_BREAK_MINUTES, break_minutes),
            "exclude_days": self._excluded_days(prefs),
            "start_date": start,
            "end_date": end,
            "daily_limit_by_date": self._daily_limits(prefs, start, end) if ordered else {},
            "daily_time_window_by_date": self._daily_windows(prefs, start, end) if ordered else {},
            "exam_date": prefs.exam_date,
            "intensity": prefs.intensity,
            "goal": prefs.goal,
            "hours_per_day": prefs.hours_per_day,
            "user_level": prefs.user_level,
            "content_preference": prefs.content_preference,
        }

    # ===========================
    # Responses
    # ===========================

    def _create_response(self, result: ScheduleResult, start: date, end: date, solve_time: float) -> ScheduleResponse:
        return ScheduleResponse(
            blocks=result.blocks,
            schedule_range=ScheduleRange(start_date=start, end_date=end),
            meta=ScheduleMeta(
                total_hours=result.total_hours,
                total_blocks=sum(1 for block in result.blocks if not block.is_break),
                cache_hit=bool(result.cache_hit),
            ),
            subject_distribution=result.subject_distribution,
            phase_by_date=result.phase_by_date,
            status="OK",
            solve_time_seconds=solve_time,
        )

    def _create_invalid_response(self, error: str) -> ScheduleResponse:
        """Create response for structurally invalid input."""
        return ScheduleResponse(
            messages=Messages(error_message=[
                ErrorMessage(
                    code="INVALID_INPUT",
                    title="Invalid Schedule Request",
                    description=error,
                    resolution_hint="Check the subjects, study times and date range, then try again.",
                )
            ]),
            status="INVALID",
            solve_time_seconds=0.0,
        )

    def _create_error_response(self, error: str) -> ScheduleResponse:
        """Create response for an unexpected scheduler failure."""
        return ScheduleResponse(
            messages=Messages(error_message=[
                ErrorMessage(
                    code="SCHEDULER_ERROR",
                    title="Scheduler Error",
                    description=error,
                    resolution_hint="Please check your input data and try again. If the problem persists, contact support.",
                )
            ]),
            status="ERROR",
            solve_time_seconds=0.0,
        )

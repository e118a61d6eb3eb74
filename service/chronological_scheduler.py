"""
Chronological, exam-aware scheduler.

Superset of the weekly scheduler: it threads study counters forward day by
day, walks every subject through a lesson -> exercises -> review -> mock
cycle, queues spaced reviews after lessons, and swaps an ordinary block for
a subject or full mock exam once the readiness thresholds are met. Each
mock is followed by a correction block on a later day.
"""
import logging
from collections import Counter, defaultdict, deque
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Deque, Dict, List, Optional, Sequence, Set, Tuple

from models.schemas import (
    ChronologicalScheduleConfig, ExamReadinessRules, ScheduleResult, StudyBlock, Subject
)
from service.day_packer import build_block, build_break
from service.exam_rules import DEFAULT_EXAM_RULES, days_until, resolve_exam_rules
from service.schedule_cache import ScheduleCache, build_fingerprint
from service.time_utils import date_range, time_to_minutes, weekday_index
from service.weekly_scheduler import effective_window, resolve_range, summarize_schedule, validate_inputs
from service.weights import LEVEL_ADVANCED, LEVEL_BASIC, SubjectWeight, resolve_subject_weights

logger = logging.getLogger(__name__)

MIN_BLOCK_MINUTES = 25
DEFAULT_HOURS_PER_DAY = 2
CORRECTION_MIN_MINUTES = 45
CORRECTION_MAX_MINUTES = 90

CYCLE_ORDER = ("lesson", "exercises", "review", "mock")
PEDAGOGICAL_STEP = {"lesson": 1, "exercises": 2, "review": 3, "mock": 4}
PEDAGOGICAL_STEP_TOTAL = len(CYCLE_ORDER)

REVIEW_OFFSETS = (1, 7, 30)
REVIEW_OFFSETS_INTENSE = (1, 5, 12, 30)
REVIEW_OFFSETS_REVIEW_FOCUS = (1, 3, 7, 14, 30)

PRIMARY_SUBJECT_COUNT = 3


@dataclass(frozen=True)
class CycleState:
    """Position of a subject in the pedagogical cycle."""
    stage_index: int = 0
    progress: int = 0

    @property
    def stage(self) -> str:
        return CYCLE_ORDER[self.stage_index]


@dataclass
class PendingCorrection:
    subject_id: str
    subject_name: str
    mock_minutes: int
    mock_date: date


@dataclass
class DayState:
    """Working accumulators for the day being planned."""
    current: int
    end: int
    limit: int
    phase: str
    due: Counter
    planned: int = 0
    seq: int = 0
    blocks_since_review: int = 0
    daily_count: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    recent: Deque[str] = field(default_factory=lambda: deque(maxlen=3))
    subjects: Set[str] = field(default_factory=set)

    @property
    def available(self) -> int:
        return min(self.limit - self.planned, self.end - self.current)


def cycle_repeat_target(level: str, stage: str, user_level: str = "intermediario", content_preference: str = "misto") -> int:
    """How many sessions a subject spends in a cycle stage before moving on."""
    if stage == "mock":
        return 1
    if stage == "review":
        return 2 if content_preference == "revisao" else 1
    if stage == "lesson":
        base = 2 if level == LEVEL_BASIC else 1
        if user_level == "iniciante":
            base += 1
        if content_preference == "aulas":
            base += 1
        if content_preference == "exercicios":
            base = max(1, base - 1)
        return base

    practice = 3 if level == LEVEL_ADVANCED else 1 if level == LEVEL_BASIC else 2
    if user_level == "avancado":
        practice += 1
    if user_level == "iniciante":
        practice = max(1, practice - 1)
    if content_preference == "exercicios":
        practice += 1
    if content_preference == "aulas":
        practice = max(1, practice - 1)
    return practice


def advance_cycle(state: CycleState, level: str, user_level: str = "intermediario", content_preference: str = "misto") -> CycleState:
    target = cycle_repeat_target(level, state.stage, user_level, content_preference)
    if state.progress + 1 < target:
        return CycleState(stage_index=state.stage_index, progress=state.progress + 1)
    return CycleState(stage_index=(state.stage_index + 1) % len(CYCLE_ORDER), progress=0)


def phase_for_date(day: date, start: date) -> Tuple[str, str]:
    """Study phase (key, label) by week of the range."""
    week = (day - start).days // 7 + 1
    if week <= 2:
        return "foundation", "Foundation"
    if week <= 5:
        return "deepening", "Deepening"
    return "consolidation", "Consolidation"


def review_offsets_for(content_preference: str, intensity: str) -> Tuple[int, ...]:
    if content_preference == "revisao":
        return REVIEW_OFFSETS_REVIEW_FOCUS
    if intensity == "intensa":
        return REVIEW_OFFSETS_INTENSE
    return REVIEW_OFFSETS


class ChronologicalScheduler:
    """
    Day-by-day exam-aware scheduler.

    A new run resets all working state, so one instance can be reused for
    sequential requests. Results are memoized in the optional cache.
    """

    def __init__(self, cache: Optional[ScheduleCache] = None):
        """
        Initialize the scheduler.

        Args:
            cache: Optional memoization cache shared between runs
        """
        self.cache = cache
        self.config: Optional[ChronologicalScheduleConfig] = None
        self.rules: ExamReadinessRules = DEFAULT_EXAM_RULES
        self.debug_log: List[str] = []

    def generate(
        self,
        subjects: Sequence[Subject],
        config: ChronologicalScheduleConfig,
        today: Optional[date] = None,
    ) -> ScheduleResult:
        """
        Main entry point to build the chronological schedule.

        Args:
            subjects: Subjects to plan (inactive ones are ignored)
            config: Windows, budgets, counters and readiness rules
            today: Reference day for the default range and for counting days
                to the exam (the range start when omitted)

        Returns:
            ScheduleResult; cache_hit tells whether it came from the cache

        Raises:
            ScheduleValidationError: on empty subjects, bad times or inverted range
        """
        # Step 1: Validate input and resolve the range and rules
        validate_inputs(subjects, config)
        start, end = resolve_range(config, today)
        rules = config.exam_rules or resolve_exam_rules(
            config.goal, config.intensity, days_until(config.exam_date, today or start)
        )

        # Step 2: Serve from cache when possible
        cache_key = None
        if self.cache is not None and config.enable_cache:
            cache_key = self._cache_key(subjects, config, start, end, rules)
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.info(f"Chronological schedule cache hit for {start.isoformat()}..{end.isoformat()}")
                cached.cache_hit = True
                return cached

        # Step 3: Reset working state
        self._reset(subjects, config, start, end, rules)

        # Step 4: Plan each included day
        blocks: List[StudyBlock] = []
        for day in date_range(start, end):
            if weekday_index(day) in self.excluded:
                continue
            blocks.extend(self._plan_day(day))

        # Step 5: Summarize and memoize
        result = summarize_schedule(blocks, self.phase_by_date, self.debug_log)
        result.cache_hit = False
        if cache_key is not None:
            self.cache.set(cache_key, result)

        logger.info(
            f"Chronological schedule {start.isoformat()}..{end.isoformat()}: "
            f"{sum(1 for b in result.blocks if not b.is_break)} study blocks, {result.total_hours}h"
        )
        return result

    # ===========================
    # Setup
    # ===========================

    def _cache_key(self, subjects, config, start: date, end: date, rules: ExamReadinessRules) -> str:
        return build_fingerprint({
            "v": 1,
            "subjects": [subject.model_dump(mode="json") for subject in subjects],
            "config": config.model_dump(mode="json", exclude={"generated_at", "enable_cache"}),
            "start": start.isoformat(),
            "end": end.isoformat(),
            "rules": rules.model_dump(mode="json"),
        })

    def _reset(self, subjects, config: ChronologicalScheduleConfig, start: date, end: date, rules: ExamReadinessRules):
        self.config = config
        self.start = start
        self.end = end
        self.rules = rules
        self.stamp = config.generated_at or datetime.now(timezone.utc)
        self.excluded = set(config.exclude_days)

        self.active = [subject for subject in subjects if subject.is_active]
        self.order = {subject.id: index for index, subject in enumerate(self.active)}
        self.weights: Dict[str, SubjectWeight] = {
            w.subject_id: w for w in resolve_subject_weights(self.active, config.max_block_minutes)
        }
        by_priority = sorted(self.active, key=lambda s: -s.priority)
        self.primary_subjects = [s.id for s in by_priority[:PRIMARY_SUBJECT_COUNT]]

        self.max_daily_repeats = 1 if config.goal == "enem" else 2
        self.review_gap = 2 if config.content_preference == "revisao" else 3
        self.review_offsets = review_offsets_for(config.content_preference, config.intensity)

        self.planned_lessons: Dict[str, int] = defaultdict(int)
        self.planned_practice: Dict[str, int] = defaultdict(int)
        self.cycle_state: Dict[str, CycleState] = {}
        self.review_queue: Dict[date, List[str]] = defaultdict(list)
        self.pending_corrections: List[PendingCorrection] = []
        self.last_mock_date: Optional[date] = None

        self.usage: Dict[str, int] = defaultdict(int)
        self.global_recent: Deque[str] = deque(maxlen=5)
        self.last_subject_id: Optional[str] = None
        self.last_day_subjects: Set[str] = set()

        self.phase_by_date: Dict[str, str] = {}
        self.debug_log = []
        self.remaining_slots = self._allocate_slots()

    def _daily_limit(self, day: date, window_minutes: int) -> int:
        """Study minutes allowed on a day, never more than its window."""
        override = self.config.daily_limit_by_date.get(day)
        if override is not None:
            return min(window_minutes, max(0, override))
        hours = self.config.hours_per_day if self.config.hours_per_day is not None else DEFAULT_HOURS_PER_DAY
        return min(window_minutes, int(round(max(0, hours) * 60)))

    def _window_minutes(self, day: date) -> Tuple[int, int]:
        window = effective_window(self.config, day)
        return time_to_minutes(window.start), time_to_minutes(window.end)

    def _allocate_slots(self) -> Dict[str, int]:
        """Split the range's block slots between subjects by allocation share."""
        slot_size = max(MIN_BLOCK_MINUTES, self.config.max_block_minutes)
        total_slots = 0
        for day in date_range(self.start, self.end):
            if weekday_index(day) in self.excluded:
                continue
            window_start, window_end = self._window_minutes(day)
            limit = self._daily_limit(day, max(0, window_end - window_start))
            total_slots += max(1, limit // slot_size)
        total_slots = max(1, total_slots)

        share_sum = max(0.1, sum(w.share for w in self.weights.values()))
        return {
            subject_id: max(1, round(w.share / share_sum * total_slots))
            for subject_id, w in self.weights.items()
        }

    # ===========================
    # Day Planning
    # ===========================

    def _plan_day(self, day: date) -> List[StudyBlock]:
        phase_key, phase_label = phase_for_date(day, self.start)
        self.phase_by_date[day.isoformat()] = phase_label

        window_start, window_end = self._window_minutes(day)
        if window_end <= window_start:
            return []

        state = DayState(
            current=window_start,
            end=window_end,
            limit=self._daily_limit(day, window_end - window_start),
            phase=phase_key,
            due=Counter(self.review_queue.pop(day, [])),
        )
        blocks: List[StudyBlock] = []

        # Corrections owed from earlier mock exams go first
        self._place_corrections(day, state, blocks)

        while state.current + MIN_BLOCK_MINUTES <= state.end and state.planned < state.limit:
            available = state.available
            if available < MIN_BLOCK_MINUTES:
                break

            subject = self._choose_subject(state)
            if subject is None:
                break

            session, block_type, advance = self._pick_session(subject, state, day)
            minutes = self._block_minutes(session, available)
            if minutes < MIN_BLOCK_MINUTES:
                break

            blocks.append(build_block(
                day, state.seq, state.current, minutes, self.stamp,
                subject_id=subject.id,
                subject_name=subject.name,
                block_type=block_type,
                goal=self.config.goal,
                related_subject_id=subject.id if session in ("review", "mock") else None,
                phase=state.phase,
                pedagogical_step=PEDAGOGICAL_STEP[session],
            ))
            state.seq += 1
            state.current += minutes
            state.planned += minutes
            self._record(subject, session, advance, minutes, day, state)
            self._place_break(day, state, blocks)

        # No trailing break at the end of the day
        while blocks and blocks[-1].is_break:
            blocks.pop()

        self.last_day_subjects = state.subjects
        if self.config.debug:
            study_count = sum(1 for b in blocks if not b.is_break)
            self.debug_log.append(f"Day {day.isoformat()}: {study_count} blocks")
        logger.debug(f"Planned {day.isoformat()}: {state.planned} study minutes")
        return blocks

    def _place_break(self, day: date, state: DayState, blocks: List[StudyBlock]):
        minutes = self.config.break_minutes
        if minutes <= 0:
            return
        if state.current + minutes + MIN_BLOCK_MINUTES > state.end:
            return
        if state.planned + MIN_BLOCK_MINUTES > state.limit:
            return
        blocks.append(build_break(day, state.seq, state.current, minutes, self.stamp))
        state.seq += 1
        state.current += minutes

    def _place_corrections(self, day: date, state: DayState, blocks: List[StudyBlock]):
        """Place corrections queued on earlier days; keep the ones that do not fit."""
        still_pending = []
        for pending in self.pending_corrections:
            minutes = min(
                max(CORRECTION_MIN_MINUTES, min(CORRECTION_MAX_MINUTES, pending.mock_minutes)),
                self.config.max_block_minutes,
                state.available,
            )
            if pending.mock_date >= day or minutes < MIN_BLOCK_MINUTES:
                still_pending.append(pending)
                continue

            blocks.append(build_block(
                day, state.seq, state.current, minutes, self.stamp,
                subject_id=pending.subject_id,
                subject_name=pending.subject_name,
                block_type="correction",
                goal=self.config.goal,
                related_subject_id=pending.subject_id,
                phase=state.phase,
            ))
            state.seq += 1
            state.current += minutes
            state.planned += minutes
            self._place_break(day, state, blocks)

        self.pending_corrections = still_pending

    # ===========================
    # Subject and Session Choice
    # ===========================

    def _has_lesson(self, subject_id: str) -> bool:
        return (
            self.config.completed_lessons_by_subject.get(subject_id, 0) > 0
            or self.planned_lessons[subject_id] > 0
        )

    def _score(self, subject: Subject, state: DayState) -> float:
        sid = subject.id
        score = (
            self.weights[sid].weight * 4
            + self.remaining_slots.get(sid, 0) * 2
            - self.usage[sid] * 3
        )
        if sid != self.last_subject_id:
            score += 8
        if not self._has_lesson(sid):
            score += 18
        if sid in state.recent:
            score -= 12
        if sid in self.global_recent:
            score -= 10
        if sid in self.last_day_subjects:
            score -= 16 if state.planned == 0 else 6
        return score

    def _choose_subject(self, state: DayState) -> Optional[Subject]:
        """Pick the best-scoring candidate, avoiding an immediate repeat."""
        pool = [s for s in self.active if state.daily_count[s.id] < self.max_daily_repeats]
        if not pool:
            return None

        if self.config.first_cycle_all_subjects:
            without_lesson = [s for s in pool if not self._has_lesson(s.id)]
            if without_lesson:
                pool = without_lesson

        with_review_due = [s for s in pool if state.due[s.id] > 0]
        candidates = with_review_due or pool
        ranked = sorted(candidates, key=lambda s: (-self._score(s, state), self.order[s.id]))

        for subject in ranked:
            if subject.id != self.last_subject_id:
                return subject
        return ranked[0]

    def _expected_stage(self, subject: Subject) -> str:
        stage = self.cycle_state.get(subject.id, CycleState()).stage
        level = self.weights[subject.id].level
        if stage == "mock" and level == LEVEL_BASIC and self.config.user_level == "iniciante":
            return "review"
        return stage

    def _pick_session(self, subject: Subject, state: DayState, day: date) -> Tuple[str, str, bool]:
        """
        Decide the session kind for the chosen subject.

        Returns:
            (session, block_type, advance_cycle)
        """
        sid = subject.id
        has_lesson = self._has_lesson(sid)
        expected = self._expected_stage(subject) if has_lesson else "lesson"

        if state.due[sid] > 0 and has_lesson:
            session = "review"
            state.due[sid] -= 1
            state.blocks_since_review = 0
            advance = expected == "review"
        elif state.blocks_since_review >= self.review_gap and len(state.recent) >= 2 and has_lesson:
            session = "review"
            state.blocks_since_review = 0
            advance = expected == "review"
        else:
            session = expected
            advance = True
            if session == "review":
                state.blocks_since_review = 0
            else:
                state.blocks_since_review += 1

        if session != "mock":
            return session, session, advance

        if self._can_schedule_full_mock(day):
            return session, "full_mock_exam", advance
        if self._can_schedule_area_mock(day):
            return session, "subject_mock_exam", advance

        # Not ready yet: reinforce with practice and keep waiting in the mock stage
        return "exercises", "exercises", False

    def _block_minutes(self, session: str, available: int) -> int:
        base = self.config.max_block_minutes
        duration = base
        if session == "review":
            duration = min(base, max(MIN_BLOCK_MINUTES, round(base * 0.8)))
        return min(duration, available)

    def _record(self, subject: Subject, session: str, advance: bool, minutes: int, day: date, state: DayState):
        """Thread counters forward after a block is placed."""
        sid = subject.id
        if session == "mock":
            self.last_mock_date = day
            self.pending_corrections.append(PendingCorrection(
                subject_id=sid, subject_name=subject.name, mock_minutes=minutes, mock_date=day,
            ))
        else:
            state.daily_count[sid] += 1
            self.remaining_slots[sid] = max(0, self.remaining_slots.get(sid, 0) - 1)
            self.usage[sid] += 1
            state.subjects.add(sid)
            state.recent.append(sid)
        self.global_recent.append(sid)
        self.last_subject_id = sid

        if advance:
            self.cycle_state[sid] = advance_cycle(
                self.cycle_state.get(sid, CycleState()),
                self.weights[sid].level,
                self.config.user_level,
                self.config.content_preference,
            )

        if session == "lesson":
            self.planned_lessons[sid] += 1
            for offset in self.review_offsets:
                review_day = day + timedelta(days=offset)
                if self.start <= review_day <= self.end:
                    self.review_queue[review_day].append(sid)
        elif session == "exercises":
            self.planned_practice[sid] += 1

    # ===========================
    # Exam Readiness Gates
    # ===========================

    def _lessons_total(self) -> int:
        return self.config.completed_lessons_total + sum(self.planned_lessons.values())

    def _practice_total(self) -> int:
        return self.config.completed_practice_total + sum(self.planned_practice.values())

    def _can_schedule_area_mock(self, day: date) -> bool:
        rules = self.rules
        if (day - self.start).days < rules.min_days_before_area_mock:
            return False
        if self._lessons_total() < rules.min_lessons_before_area_mock:
            return False
        if rules.min_practice_before_mock and self._practice_total() < rules.min_practice_before_mock // 2:
            return False
        return True

    def _can_schedule_full_mock(self, day: date) -> bool:
        rules = self.rules
        if (day - self.start).days < rules.min_days_before_mock:
            return False
        if self._lessons_total() < rules.min_lessons_before_mock:
            return False
        if rules.min_practice_before_mock and self._practice_total() < rules.min_practice_before_mock:
            return False
        if rules.min_lessons_per_subject and self.primary_subjects:
            for subject_id in self.primary_subjects:
                lessons = (
                    self.config.completed_lessons_by_subject.get(subject_id, 0)
                    + self.planned_lessons[subject_id]
                )
                if lessons < rules.min_lessons_per_subject:
                    return False
        if self.last_mock_date is not None:
            if (day - self.last_mock_date).days < rules.frequency_days:
                return False
        return True


def generate_chronological_schedule(
    subjects: Sequence[Subject],
    config: ChronologicalScheduleConfig,
    cache: Optional[ScheduleCache] = None,
    today: Optional[date] = None,
) -> ScheduleResult:
    """Build a chronological schedule with a one-off scheduler instance."""
    return ChronologicalScheduler(cache=cache).generate(subjects, config, today=today)

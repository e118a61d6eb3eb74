from pydantic import AfterValidator, BaseModel, Field, field_validator
from typing import Annotated, List, Dict, Optional, Literal
from datetime import date, datetime

from service.time_utils import is_valid_time


Intensity = Literal["leve", "normal", "intensa"]
UserLevel = Literal["iniciante", "intermediario", "avancado"]
ContentPreference = Literal["aulas", "exercicios", "revisao", "misto"]
BlockType = Literal[
    "lesson",
    "exercises",
    "review",
    "subject_mock_exam",
    "full_mock_exam",
    "correction",
]
BlockStatus = Literal["scheduled", "in-progress", "completed", "skipped"]


def _check_time(value: Optional[str]) -> Optional[str]:
    if value is not None and not is_valid_time(value):
        raise ValueError(f"'{value}' is not a valid HH:MM time")
    return value


def _check_weekdays(days: Optional[List[int]]) -> Optional[List[int]]:
    if days is None:
        return days
    for day in days:
        if day < 0 or day > 6:
            raise ValueError(f"Weekday {day} is out of range (0=Sunday .. 6=Saturday)")
    return days


TimeStr = Annotated[str, AfterValidator(_check_time)]
Weekdays = Annotated[List[int], AfterValidator(_check_weekdays)]


# ===========================
# Subject Models
# ===========================

class Subject(BaseModel):
    """A topic to study. Read-only input to the schedulers."""
    id: str
    name: str
    priority: int = Field(5, ge=1, le=10)       # Higher = more weight in rotation
    difficulty: int = Field(5, ge=1, le=10)     # Drives session-type cadence
    target_hours: float = Field(0, ge=0)        # Weekly target
    completed_hours: float = Field(0, ge=0)     # Completed toward this week's target
    total_hours: float = Field(0, ge=0)
    sessions_count: int = Field(0, ge=0)
    average_score: float = Field(0, ge=0)
    is_active: bool = True


class TimeWindow(BaseModel):
    """Daily study window, HH:MM strings"""
    start: TimeStr
    end: TimeStr


# ===========================
# Core Configuration
# ===========================

class ExamReadinessRules(BaseModel):
    """Thresholds gating subject ("area") and full mock exams"""
    min_lessons_before_mock: int = Field(ge=0)
    min_practice_before_mock: int = Field(0, ge=0)
    min_lessons_per_subject: int = Field(0, ge=0)
    min_days_before_mock: int = Field(ge=0)
    frequency_days: int = Field(ge=1)
    min_lessons_before_area_mock: int = Field(0, ge=0)
    min_days_before_area_mock: int = Field(0, ge=0)


class ScheduleConfig(BaseModel):
    """Schedule configuration consumed by the weekly scheduler."""
    preferred_start: TimeStr = "09:00"
    preferred_end: TimeStr = "18:00"
    max_block_minutes: int = Field(90, gt=0)
    break_minutes: int = Field(10, ge=0)
    exclude_days: Weekdays = []  # 0=Sunday .. 6=Saturday
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    daily_limit_by_date: Dict[date, int] = {}
    daily_time_window_by_date: Dict[date, TimeWindow] = {}
    exam_date: Optional[date] = None
    intensity: Intensity = "normal"
    goal: str = "enem"
    hours_per_day: Optional[float] = Field(None, ge=0, le=24)
    user_level: UserLevel = "intermediario"
    content_preference: ContentPreference = "misto"


class ChronologicalScheduleConfig(ScheduleConfig):
    """Configuration for the exam-aware chronological scheduler."""
    first_cycle_all_subjects: bool = True
    completed_lessons_total: int = Field(0, ge=0)
    completed_lessons_by_subject: Dict[str, int] = {}
    completed_practice_total: int = Field(0, ge=0)
    completed_practice_by_subject: Dict[str, int] = {}
    exam_rules: Optional[ExamReadinessRules] = None
    enable_cache: bool = True
    debug: bool = False
    generated_at: Optional[datetime] = None  # Not part of the cache key


# ===========================
# Output Models
# ===========================

class StudyBlock(BaseModel):
    """Scheduled interval: a study session tied to a subject, or a break"""
    id: str
    subject_id: Optional[str] = None   # None for breaks
    subject_name: Optional[str] = None
    date: date
    start_time: str  # HH:MM
    end_time: str    # HH:MM
    duration_minutes: int
    is_break: bool = False
    block_type: Optional[BlockType] = None
    status: BlockStatus = "scheduled"
    title: Optional[str] = None
    description: Optional[str] = None
    related_subject_id: Optional[str] = None
    phase: Optional[str] = None
    pedagogical_step: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class ScheduleResult(BaseModel):
    """Generator output"""
    blocks: List[StudyBlock] = []
    total_hours: float = 0.0
    cache_hit: Optional[bool] = None
    subject_distribution: Dict[str, float] = {}  # subject_id -> hours
    phase_by_date: Dict[str, str] = {}
    debug_log: List[str] = []


# ===========================
# Request Schemas
# ===========================

class ScheduleRange(BaseModel):
    start_date: date
    end_date: date


class StudyPreferences(BaseModel):
    """User-facing study preferences, normalized into a ScheduleConfig"""
    preferred_start: TimeStr = "09:00"
    preferred_end: Optional[TimeStr] = None
    max_block_minutes: Optional[int] = Field(None, gt=0)
    break_minutes: Optional[int] = Field(None, ge=0)
    hours_per_day: float = Field(2.0, ge=0, le=24)
    days_of_week: Optional[Weekdays] = None
    exclude_days: Optional[Weekdays] = None
    daily_hours_by_weekday: Optional[Dict[int, float]] = None
    daily_window_by_weekday: Optional[Dict[int, TimeWindow]] = None
    start_date: Optional[date] = None
    exam_date: Optional[date] = None
    intensity: Intensity = "normal"
    goal: str = "enem"
    user_level: UserLevel = "intermediario"
    content_preference: ContentPreference = "misto"

    @field_validator("daily_hours_by_weekday", "daily_window_by_weekday")
    @classmethod
    def validate_weekday_keys(cls, value):
        if value is not None:
            _check_weekdays(list(value.keys()))
        return value


class WeeklyScheduleRequest(BaseModel):
    """Request for the weekly (range) scheduler"""
    subjects: List[Subject]
    preferences: StudyPreferences = StudyPreferences()
    schedule_range: Optional[ScheduleRange] = None


class ChronologicalScheduleRequest(WeeklyScheduleRequest):
    """Request for the exam-aware chronological scheduler"""
    daily_limits: Dict[date, int] = {}
    first_cycle_all_subjects: bool = True
    completed_lessons_total: int = Field(0, ge=0)
    completed_lessons_by_subject: Dict[str, int] = {}
    completed_practice_total: int = Field(0, ge=0)
    completed_practice_by_subject: Dict[str, int] = {}
    exam_rules: Optional[ExamReadinessRules] = None


class ExamRulesRequest(BaseModel):
    goal: str = "enem"
    intensity: Intensity = "normal"
    exam_date: Optional[date] = None
    today: Optional[date] = None


# ===========================
# Response Schemas
# ===========================

class ErrorMessage(BaseModel):
    """Error or warning message"""
    code: str
    title: str
    description: str
    resolution_hint: Optional[str] = None


class Messages(BaseModel):
    """Collection of error/warning messages"""
    error_message: List[ErrorMessage] = []


class ScheduleMeta(BaseModel):
    total_hours: float = 0.0
    total_blocks: int = 0  # Study blocks only
    cache_hit: bool = False


class ScheduleResponse(BaseModel):
    """Complete scheduling response"""
    blocks: List[StudyBlock] = []
    schedule_range: Optional[ScheduleRange] = None
    meta: ScheduleMeta = ScheduleMeta()
    subject_distribution: Dict[str, float] = {}
    phase_by_date: Dict[str, str] = {}
    messages: Messages = Messages()

    status: Optional[str] = None  # "OK", "INVALID", "ERROR"
    solve_time_seconds: Optional[float] = None


class ExamRulesResponse(BaseModel):
    rules: ExamReadinessRules
    days_to_exam: Optional[int] = None

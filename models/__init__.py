"""
Data models and Pydantic schemas for the study schedule API.
"""
from .schemas import (
    Subject,
    TimeWindow,
    ExamReadinessRules,
    ScheduleConfig,
    ChronologicalScheduleConfig,
    StudyBlock,
    ScheduleResult,
    ScheduleRange,
    StudyPreferences,
    WeeklyScheduleRequest,
    ChronologicalScheduleRequest,
    ExamRulesRequest,
    ErrorMessage,
    Messages,
    ScheduleMeta,
    ScheduleResponse,
    ExamRulesResponse
)

__all__ = [
    "Subject",
    "TimeWindow",
    "ExamReadinessRules",
    "ScheduleConfig",
    "ChronologicalScheduleConfig",
    "StudyBlock",
    "ScheduleResult",
    "ScheduleRange",
    "StudyPreferences",
    "WeeklyScheduleRequest",
    "ChronologicalScheduleRequest",
    "ExamRulesRequest",
    "ErrorMessage",
    "Messages",
    "ScheduleMeta",
    "ScheduleResponse",
    "ExamRulesResponse"
]

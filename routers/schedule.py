from fastapi import APIRouter
from models.schemas import (
    ChronologicalScheduleRequest, ExamRulesRequest, ExamRulesResponse, ScheduleResponse, WeeklyScheduleRequest
)
from service.planner_service import StudyPlannerService
from service.schedule_cache import ScheduleCache
from config import settings

# Create a router instance
router = APIRouter()

# Shared by all chronological requests of this process
schedule_cache = (
    ScheduleCache(ttl_seconds=settings.cache_ttl_seconds, max_entries=settings.cache_max_entries)
    if settings.cache_enabled
    else None
)


def get_planner() -> StudyPlannerService:
    return StudyPlannerService(
        cache=schedule_cache,
        clamp_inverted_range=settings.clamp_inverted_range,
        debug=settings.debug,
    )


@router.post("/schedule/weekly", response_model=ScheduleResponse)
async def generate_weekly_schedule(request: WeeklyScheduleRequest):
    """
    Generate a weekly study schedule.

    Rotates through the active subjects by weighted fair share until each
    subject's weekly target is met or the study windows are full.
    """
    planner = get_planner()
    response = planner.weekly_schedule(request)
    return response


@router.post("/schedule/chronological", response_model=ScheduleResponse)
async def generate_chronological_schedule(request: ChronologicalScheduleRequest):
    """
    Generate an exam-aware study schedule.

    Walks each subject through lessons, exercises and spaced reviews, and
    adds mock exams with their corrections once readiness thresholds are met.
    """
    planner = get_planner()
    response = planner.chronological_schedule(request)
    return response


@router.post("/rules/exam-readiness", response_model=ExamRulesResponse)
async def get_exam_readiness_rules(request: ExamRulesRequest):
    """Resolve mock exam thresholds and cadence for a goal and intensity."""
    planner = get_planner()
    return planner.exam_rules(request)

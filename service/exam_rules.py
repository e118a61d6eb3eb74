"""
Exam-readiness rule resolution.

Decides how much study must be behind a student before mock exams are
scheduled, and how often they recur.
"""
from datetime import date
from typing import Optional

from models.schemas import ExamReadinessRules

URGENT_DAYS_TO_EXAM = 90
URGENT_FREQUENCY_DAYS = 7
RELAXED_FREQUENCY_DAYS = 14

# goal -> (base lessons, base practice, lessons per subject, area lessons)
GOAL_THRESHOLDS = {
    "medicina": (20, 12, 3, 8),
    "concurso": (16, 10, 2, 6),
    "enem": (20, 12, 2, 8),
}
OTHER_GOAL_THRESHOLDS = (20, 8, 2, 6)

MIN_DAYS_BEFORE_MOCK = 14
MIN_DAYS_BEFORE_AREA_MOCK = 7

# Used when the chronological scheduler is given no rule set
DEFAULT_EXAM_RULES = ExamReadinessRules(
    min_lessons_before_mock=10,
    min_practice_before_mock=8,
    min_lessons_per_subject=2,
    min_days_before_mock=14,
    frequency_days=7,
    min_lessons_before_area_mock=6,
    min_days_before_area_mock=7,
)


def days_until(exam_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Whole days from today to the exam, or None without an exam date."""
    if exam_date is None:
        return None
    return (exam_date - (today or date.today())).days


def frequency_for(intensity: str, days_to_exam: Optional[int]) -> int:
    """Mock exam cadence: weekly within 90 days of the exam, fortnightly otherwise."""
    cadence = URGENT_FREQUENCY_DAYS if days_to_exam is not None and days_to_exam <= URGENT_DAYS_TO_EXAM else RELAXED_FREQUENCY_DAYS
    if intensity == "intensa":
        return max(5, cadence - 3)
    if intensity == "leve":
        return cadence + 7
    return cadence


def resolve_exam_rules(goal: str, intensity: str = "normal", days_to_exam: Optional[int] = None) -> ExamReadinessRules:
    """
    Resolve the readiness thresholds for a study goal.

    Args:
        goal: Study goal ("enem", "medicina", "concurso" or anything else)
        intensity: "leve", "normal" or "intensa"
        days_to_exam: Days remaining until the exam, None when unknown

    Returns:
        ExamReadinessRules for the goal, shifted by intensity
    """
    lesson_delta = -2 if intensity == "intensa" else 2 if intensity == "leve" else 0
    practice_delta = -1 if intensity == "intensa" else 2 if intensity == "leve" else 0
    lessons, practice, per_subject, area_lessons = GOAL_THRESHOLDS.get(goal, OTHER_GOAL_THRESHOLDS)

    return ExamReadinessRules(
        min_lessons_before_mock=max(8, lessons + lesson_delta),
        min_practice_before_mock=max(4, practice + practice_delta),
        min_lessons_per_subject=per_subject,
        min_days_before_mock=MIN_DAYS_BEFORE_MOCK,
        frequency_days=frequency_for(intensity, days_to_exam),
        min_lessons_before_area_mock=area_lessons,
        min_days_before_area_mock=MIN_DAYS_BEFORE_AREA_MOCK,
    )

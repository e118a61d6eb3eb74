"""
Display labels and descriptions for generated blocks.
"""
from typing import Optional

BLOCK_TYPE_LABELS = {
    "lesson": "Lesson",
    "exercises": "Exercises",
    "review": "Review",
    "subject_mock_exam": "Mock exam (subject)",
    "full_mock_exam": "Mock exam (full)",
    "correction": "Correction",
}

BREAK_TITLE = "Break"


def block_type_label(block_type: Optional[str]) -> Optional[str]:
    if block_type is None:
        return None
    return BLOCK_TYPE_LABELS.get(block_type)


def block_display_title(subject_name: Optional[str], block_type: Optional[str], is_break: bool = False) -> str:
    """Title shown for a block, e.g. 'Biologia - Lesson'."""
    if is_break:
        return BREAK_TITLE
    name = subject_name or "Study block"
    label = block_type_label(block_type)
    if not label:
        return name
    return f"{name} - {label}"


def correction_description(goal: str) -> str:
    if goal == "medicina":
        return "Correction + error notebook (60-90min)"
    if goal == "concurso":
        return "Correction + error map"
    return "Correction + performance analysis"


def block_description(block_type: Optional[str], goal: str = "enem", subject_name: Optional[str] = None) -> str:
    """Short instruction text for a block type, tuned per study goal."""
    if block_type == "lesson":
        return "Lesson + notes + 5 min summary"
    if block_type == "exercises":
        return "Exercise list + review mistakes"
    if block_type == "review":
        return "Guided review (flashcards/summary)"
    if block_type == "subject_mock_exam":
        return f"{subject_name or 'Subject'} mock exam + timed"
    if block_type == "full_mock_exam":
        if goal == "medicina":
            return "Medicine mock exam + timed"
        if goal == "concurso":
            return "Public exam mock + correction"
        return "ENEM mock exam + timed"
    if block_type == "correction":
        return correction_description(goal)
    return "Study session"

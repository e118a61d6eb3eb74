"""
Subject weight resolver and rotation cursor.

The resolver turns (priority, difficulty, target hours) into a rotation
weight and a weekly minute need. The cursor is the accumulator threaded
through the day loop: it remembers how many minutes each subject has been
served and how much of its need is left, and orders the queue so that the
subject furthest behind its weighted share goes next.
"""
import math
from dataclasses import dataclass, field, replace
from typing import Dict, List, Sequence, Tuple

from models.schemas import Subject

LEVEL_BASIC = "basico"
LEVEL_INTERMEDIATE = "intermediario"
LEVEL_ADVANCED = "avancado"

# Session kinds a subject cycles through in the weekly variant.
# Harder subjects get more exercise sessions per lesson.
CADENCE_BY_LEVEL: Dict[str, Tuple[str, ...]] = {
    LEVEL_BASIC: ("lesson", "lesson", "exercises", "review"),
    LEVEL_INTERMEDIATE: ("lesson", "exercises", "exercises", "review"),
    LEVEL_ADVANCED: ("lesson", "exercises", "exercises", "exercises", "review"),
}


@dataclass(frozen=True)
class SubjectWeight:
    """Resolved scheduling weight for one active subject."""
    subject_id: str
    name: str
    weight: float
    level: str
    weekly_minutes: int
    remaining_minutes: int
    sessions_per_week: int
    completed_hours: float
    share: float


def rotation_weight(subject: Subject) -> float:
    """Priority scaled up by difficulty: a 10/10 subject weighs 20, a 1/1 weighs 1.1."""
    return round(subject.priority * (1 + subject.difficulty / 10), 4)


def subject_level(subject: Subject) -> str:
    if subject.difficulty <= 4:
        return LEVEL_BASIC
    if subject.difficulty <= 7:
        return LEVEL_INTERMEDIATE
    return LEVEL_ADVANCED


def session_cadence(subject: Subject) -> Tuple[str, ...]:
    return CADENCE_BY_LEVEL[subject_level(subject)]


def session_kind(level: str, session_index: int) -> str:
    """Session kind for the n-th session (0-based) of a subject at the given level."""
    cadence = CADENCE_BY_LEVEL[level]
    return cadence[session_index % len(cadence)]


def allocation_share(subject: Subject, weight: float) -> float:
    """Relative share of the range's slots, used by the chronological scheduler."""
    target_weight = max(0.5, subject.target_hours or 1)
    return max(0.1, target_weight * 1.4 + weight * 0.4)


def resolve_subject_weights(subjects: Sequence[Subject], max_block_minutes: int) -> List[SubjectWeight]:
    """
    Resolve rotation weights for the active subjects.

    Args:
        subjects: Input subjects (inactive ones are dropped)
        max_block_minutes: Block length used to derive sessions per week

    Returns:
        Weights ordered by weight (desc), then completed hours (asc) so the
        least served subject wins a tie, then input order
    """
    resolved = []
    for index, subject in enumerate(subjects):
        if not subject.is_active:
            continue

        weight = rotation_weight(subject)
        weekly_minutes = int(round(subject.target_hours * 60))
        remaining_minutes = int(round(max(0.0, subject.target_hours - subject.completed_hours) * 60))
        sessions = math.ceil(weekly_minutes / max_block_minutes) if max_block_minutes > 0 else 0

        resolved.append((
            -weight,
            subject.completed_hours,
            index,
            SubjectWeight(
                subject_id=subject.id,
                name=subject.name,
                weight=weight,
                level=subject_level(subject),
                weekly_minutes=weekly_minutes,
                remaining_minutes=remaining_minutes,
                sessions_per_week=sessions,
                completed_hours=subject.completed_hours,
                share=allocation_share(subject, weight),
            ),
        ))

    resolved.sort(key=lambda item: item[:3])
    return [item[3] for item in resolved]


@dataclass(frozen=True)
class RotationCursor:
    """
    Rotation state carried from one day to the next.

    Instances are never mutated: every operation returns a new cursor, so
    the day loop is a plain fold over dates.
    """
    weights: Tuple[SubjectWeight, ...]
    served: Dict[str, int] = field(default_factory=dict)
    remaining: Dict[str, int] = field(default_factory=dict)
    sessions: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def start(cls, weights: Sequence[SubjectWeight]) -> "RotationCursor":
        return cls(
            weights=tuple(weights),
            served={w.subject_id: 0 for w in weights},
            remaining={w.subject_id: w.remaining_minutes for w in weights},
            sessions={w.subject_id: 0 for w in weights},
        )

    def queue(self) -> List[SubjectWeight]:
        """Subjects with need left, furthest behind their weighted share first."""
        pending = [
            (self.served[w.subject_id] / w.weight, rank, w)
            for rank, w in enumerate(self.weights)
            if self.remaining[w.subject_id] > 0
        ]
        pending.sort(key=lambda item: item[:2])
        return [item[2] for item in pending]

    def advance(self, subject_id: str, minutes: int) -> "RotationCursor":
        served = dict(self.served)
        remaining = dict(self.remaining)
        sessions = dict(self.sessions)
        served[subject_id] += minutes
        remaining[subject_id] = max(0, remaining[subject_id] - minutes)
        sessions[subject_id] += 1
        return replace(self, served=served, remaining=remaining, sessions=sessions)

    def forfeit(self, subject_id: str) -> "RotationCursor":
        """Drop a residual need too small to fill a viable block."""
        remaining = dict(self.remaining)
        remaining[subject_id] = 0
        return replace(self, remaining=remaining)

    def start_week(self) -> "RotationCursor":
        """Refill every subject's need to its full weekly target."""
        remaining = {w.subject_id: w.weekly_minutes for w in self.weights}
        return replace(self, remaining=remaining)

    def session_index(self, subject_id: str) -> int:
        return self.sessions.get(subject_id, 0)

    def has_need(self) -> bool:
        return any(minutes > 0 for minutes in self.remaining.values())

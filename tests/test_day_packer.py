"""
Test the single-day packer.
"""
from datetime import date, datetime, timezone

from models.schemas import Subject, TimeWindow
from service.day_packer import block_id, pack_day
from service.weights import RotationCursor, resolve_subject_weights

DAY = date(2024, 3, 4)
STAMP = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_cursor(*subjects, max_block=60):
    return RotationCursor.start(resolve_subject_weights(subjects, max_block))


def test_block_id_is_deterministic():
    assert block_id(DAY, 0) == "20240304-000"
    assert block_id(DAY, 12) == "20240304-012"


def test_pack_fills_window_with_breaks_between_blocks():
    cursor = make_cursor(Subject(id="bio", name="Biologia", target_hours=5))

    plan = pack_day(DAY, TimeWindow(start="09:00", end="11:00"), 60, 10, cursor, STAMP)

    assert [(b.start_time, b.end_time, b.is_break) for b in plan.blocks] == [
        ("09:00", "10:00", False),
        ("10:00", "10:10", True),
        ("10:10", "11:00", False),
    ]
    assert plan.study_minutes == 110
    assert plan.cursor.remaining["bio"] == 300 - 110


def test_pack_never_ends_with_a_break():
    cursor = make_cursor(Subject(id="bio", name="Biologia", target_hours=1))

    plan = pack_day(DAY, TimeWindow(start="09:00", end="18:00"), 60, 10, cursor, STAMP)

    assert len(plan.blocks) == 1
    assert not plan.blocks[-1].is_break
    assert plan.blocks[0].title == "Biologia - Lesson"
    assert plan.blocks[0].created_at == STAMP


def test_pack_forfeits_residual_below_minimum():
    cursor = make_cursor(
        Subject(id="tiny", name="Tiny", priority=10, target_hours=0.25),
        Subject(id="bio", name="Biologia", target_hours=1),
    )

    plan = pack_day(DAY, TimeWindow(start="09:00", end="18:00"), 60, 10, cursor, STAMP)

    assert [b.subject_id for b in plan.blocks] == ["bio"]
    assert plan.cursor.remaining["tiny"] == 0


def test_pack_respects_daily_budget():
    cursor = make_cursor(Subject(id="bio", name="Biologia", target_hours=5), max_block=90)

    plan = pack_day(DAY, TimeWindow(start="09:00", end="18:00"), 90, 10, cursor, STAMP, daily_budget=45)

    assert [b.duration_minutes for b in plan.blocks] == [45]


def test_pack_empty_or_inverted_window():
    cursor = make_cursor(Subject(id="bio", name="Biologia", target_hours=5))

    plan = pack_day(DAY, TimeWindow(start="18:00", end="09:00"), 60, 10, cursor, STAMP)

    assert plan.blocks == []
    assert plan.cursor is cursor


def test_pack_window_smaller_than_minimum_block():
    cursor = make_cursor(Subject(id="bio", name="Biologia", target_hours=5))

    plan = pack_day(DAY, TimeWindow(start="09:00", end="09:20"), 60, 10, cursor, STAMP)

    assert plan.blocks == []

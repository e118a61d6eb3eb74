"""
Test the study schedule API with self-contained test data.
"""
import pytest
from fastapi.testclient import TestClient
from main import app


client = TestClient(app)


# Test data fixtures
def get_minimal_request():
    """Return minimal valid weekly scheduling request."""
    return {
        "subjects": [
            {"id": "bio", "name": "Biologia", "priority": 8, "difficulty": 6, "target_hours": 6},
            {"id": "his", "name": "Historia", "priority": 2, "difficulty": 4, "target_hours": 4}
        ],
        "preferences": {
            "preferred_start": "09:00",
            "preferred_end": "18:00",
            "max_block_minutes": 120,
            "break_minutes": 15,
            "exclude_days": [0]
        },
        "schedule_range": {
            "start_date": "2024-03-04",
            "end_date": "2024-03-10"
        }
    }


def get_chronological_request():
    """Return a four-week exam-aware scheduling request."""
    return {
        "subjects": [
            {"id": "mat", "name": "Matematica", "priority": 9, "difficulty": 8, "target_hours": 6},
            {"id": "bio", "name": "Biologia", "priority": 7, "difficulty": 5, "target_hours": 4},
            {"id": "por", "name": "Portugues", "priority": 5, "difficulty": 3, "target_hours": 3}
        ],
        "preferences": {
            "preferred_start": "08:00",
            "preferred_end": "12:00",
            "max_block_minutes": 60,
            "break_minutes": 10,
            "hours_per_day": 2,
            "days_of_week": [1, 2, 3, 4, 5, 6],
            "goal": "enem",
            "exam_date": "2024-09-01"
        },
        "schedule_range": {
            "start_date": "2024-03-04",
            "end_date": "2024-03-31"
        }
    }


def study_blocks(data):
    return [b for b in data["blocks"] if not b["is_break"]]


def test_root_endpoint():
    """Test root endpoint is accessible."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "service" in data
    assert "status" in data
    assert data["status"] == "healthy"


def test_health_endpoint():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_weekly_endpoint_minimal():
    """Test /v1/schedule/weekly with minimal valid request."""
    request_data = get_minimal_request()

    response = client.post("/api/v1/schedule/weekly", json=request_data)

    assert response.status_code == 200, f"Expected 200, got {response.status_code}: {response.json()}"
    data = response.json()

    # Verify response structure
    assert data["status"] == "OK"
    assert isinstance(data["blocks"], list)
    assert data["schedule_range"] == {"start_date": "2024-03-04", "end_date": "2024-03-10"}
    assert data["meta"]["total_blocks"] == len(study_blocks(data))


def test_weekly_endpoint_weighting_and_excluded_sunday():
    """Higher weighted subject gets more time, Sunday stays empty."""
    response = client.post("/api/v1/schedule/weekly", json=get_minimal_request())
    data = response.json()

    minutes = {"bio": 0, "his": 0}
    for block in study_blocks(data):
        minutes[block["subject_id"]] += block["duration_minutes"]
        assert block["duration_minutes"] >= 30

    assert minutes["bio"] > minutes["his"]
    assert all(b["date"] != "2024-03-10" for b in data["blocks"])


def test_weekly_endpoint_respects_daily_hours():
    """Default hours_per_day caps every day at two hours of study."""
    response = client.post("/api/v1/schedule/weekly", json=get_minimal_request())
    data = response.json()

    per_day = {}
    for block in study_blocks(data):
        per_day[block["date"]] = per_day.get(block["date"], 0) + block["duration_minutes"]
    assert per_day
    assert all(minutes <= 120 for minutes in per_day.values())


def test_empty_subjects_returns_invalid():
    """Test that an empty subject list is reported, not raised."""
    request_data = get_minimal_request()
    request_data["subjects"] = []

    response = client.post("/api/v1/schedule/weekly", json=request_data)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "INVALID"
    assert len(data["messages"]["error_message"]) > 0
    assert data["messages"]["error_message"][0]["code"] == "INVALID_INPUT"


def test_inverted_range_returns_invalid():
    request_data = get_minimal_request()
    request_data["schedule_range"] = {"start_date": "2024-03-10", "end_date": "2024-03-04"}

    response = client.post("/api/v1/schedule/weekly", json=request_data)

    assert response.status_code == 200
    assert response.json()["status"] == "INVALID"


def test_days_of_week_excludes_other_days():
    """Only the listed weekdays get blocks."""
    request_data = get_minimal_request()
    request_data["preferences"]["days_of_week"] = [1, 3]  # Monday, Wednesday

    response = client.post("/api/v1/schedule/weekly", json=request_data)
    data = response.json()

    assert data["status"] == "OK"
    dates = {b["date"] for b in data["blocks"]}
    assert dates <= {"2024-03-04", "2024-03-06"}


def test_chronological_endpoint():
    """Test /v1/schedule/chronological with a four-week request."""
    response = client.post("/api/v1/schedule/chronological", json=get_chronological_request())

    assert response.status_code == 200, f"Expected 200, got {response.status_code}: {response.json()}"
    data = response.json()
    assert data["status"] == "OK"
    assert len(study_blocks(data)) > 0
    assert data["phase_by_date"]["2024-03-04"] == "Foundation"
    assert data["phase_by_date"]["2024-03-18"] == "Deepening"

    # Sundays are not in days_of_week
    assert all(b["date"] not in ("2024-03-10", "2024-03-17") for b in data["blocks"])
    for block in study_blocks(data):
        assert 25 <= block["duration_minutes"] <= 60


def test_chronological_endpoint_cache_hit():
    """The same request twice is served from the cache the second time."""
    request_data = get_chronological_request()
    request_data["schedule_range"]["end_date"] = "2024-03-20"

    first = client.post("/api/v1/schedule/chronological", json=request_data).json()
    second = client.post("/api/v1/schedule/chronological", json=request_data).json()

    assert first["status"] == "OK"
    assert second["meta"]["cache_hit"] is True
    assert second["blocks"] == first["blocks"]


def test_exam_rules_endpoint():
    """medicina/normal: fortnightly mocks 100 days out, weekly 60 days out."""
    far = client.post("/api/v1/rules/exam-readiness", json={
        "goal": "medicina", "intensity": "normal", "today": "2024-01-01", "exam_date": "2024-04-10"
    })
    near = client.post("/api/v1/rules/exam-readiness", json={
        "goal": "medicina", "intensity": "normal", "today": "2024-01-01", "exam_date": "2024-03-01"
    })

    assert far.status_code == 200
    assert far.json()["days_to_exam"] == 100
    assert far.json()["rules"]["frequency_days"] == 14
    assert near.json()["days_to_exam"] == 60
    assert near.json()["rules"]["frequency_days"] == 7


def test_validation_error_format():
    """Test that validation errors are returned in human-friendly format."""
    request_data = get_minimal_request()
    request_data["preferences"]["preferred_start"] = "25:00"
    request_data["subjects"][0]["priority"] = 11

    response = client.post("/api/v1/schedule/weekly", json=request_data)

    assert response.status_code == 422
    data = response.json()
    assert "errors" in data
    assert isinstance(data["errors"], dict)
    assert len(data["errors"]) >= 2

    for field, messages in data["errors"].items():
        assert isinstance(messages, list)
        assert len(messages) > 0
        assert isinstance(messages[0], str)


def test_missing_subjects_is_required():
    response = client.post("/api/v1/schedule/weekly", json={"preferences": {}})

    assert response.status_code == 422
    assert response.json()["errors"]["Subjects"] == ["Subjects is required."]


@pytest.mark.parametrize("weekday", [-1, 7])
def test_invalid_weekday_rejected(weekday):
    request_data = get_minimal_request()
    request_data["preferences"]["exclude_days"] = [weekday]

    response = client.post("/api/v1/schedule/weekly", json=request_data)

    assert response.status_code == 422

"""
Test block titles and descriptions.
"""
from service.labels import block_description, block_display_title, block_type_label


def test_titles():
    assert block_display_title("Biologia", "exercises") == "Biologia - Exercises"
    assert block_display_title("Biologia", None) == "Biologia"
    assert block_display_title(None, "lesson") == "Study block - Lesson"
    assert block_display_title("Biologia", "lesson", is_break=True) == "Break"
    assert block_type_label("full_mock_exam") == "Mock exam (full)"


def test_descriptions_follow_goal():
    assert block_description("full_mock_exam", "medicina") == "Medicine mock exam + timed"
    assert block_description("full_mock_exam", "enem") == "ENEM mock exam + timed"
    assert block_description("correction", "concurso") == "Correction + error map"
    assert block_description("subject_mock_exam", "enem", "Quimica") == "Quimica mock exam + timed"
    assert block_description(None) == "Study session"

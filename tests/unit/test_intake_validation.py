"""
Unit Tests for intake validation.
"""
import pytest

from clinassist.schemas import Intake
from clinassist.services.validation import validate_intake


def test_complete_intake_has_no_violations(amlodipine_ed_intake):
    assert validate_intake(amlodipine_ed_intake) == []


def test_empty_intake_reports_every_violation():
    errors = validate_intake(Intake())
    assert errors == [
        "patient_name is required",
        "age must be greater than 0",
        "weight must be greater than 0",
        "height must be greater than 0",
        "bp is required",
        "complaint is required",
    ]


def test_blank_strings_count_as_missing(amlodipine_ed_intake):
    intake = amlodipine_ed_intake.model_copy(update={"patient_name": "   ", "bp": "\t"})
    errors = validate_intake(intake)
    assert errors == ["patient_name is required", "bp is required"]


def test_negative_numbers_rejected(amlodipine_ed_intake):
    intake = amlodipine_ed_intake.model_copy(update={"age": -1, "weight": -70.0})
    errors = validate_intake(intake)
    assert "age must be greater than 0" in errors
    assert "weight must be greater than 0" in errors
    assert len(errors) == 2


def test_unparsable_bp_text_is_not_a_validation_error(amlodipine_ed_intake):
    intake = amlodipine_ed_intake.model_copy(update={"bp": "not measured"})
    assert validate_intake(intake) == []


@pytest.mark.parametrize("field,value", [
    ("weight", float("nan")),
    ("height", float("nan")),
    ("weight", float("inf")),
    ("height", float("-inf")),
])
def test_non_finite_numbers_rejected(amlodipine_ed_intake, field, value):
    intake = amlodipine_ed_intake.model_copy(update={field: value})
    assert validate_intake(intake) == [f"{field} must be greater than 0"]

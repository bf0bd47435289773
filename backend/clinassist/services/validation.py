# backend/clinassist/services/validation.py
import math
from typing import List

from clinassist.schemas import Intake


def _positive(value) -> bool:
    # NaN compares False against everything, so test the positive case
    return value is not None and math.isfinite(value) and value > 0


def validate_intake(intake: Intake) -> List[str]:
    """
    Check the intake for required fields.

    Every check runs; all violations are returned, not just the first.
    An empty list means the intake may be scored.
    """
    errors = []
    if not (intake.patient_name or "").strip():
        errors.append("patient_name is required")
    if not _positive(intake.age):
        errors.append("age must be greater than 0")
    if not _positive(intake.weight):
        errors.append("weight must be greater than 0")
    if not _positive(intake.height):
        errors.append("height must be greater than 0")
    if not (intake.bp or "").strip():
        errors.append("bp is required")
    if not (intake.complaint or "").strip():
        errors.append("complaint is required")
    return errors

# backend/clinassist/services/schema_check.py
from typing import List

from pydantic import ValidationError

from clinassist.schemas import AnalysisResponse, RiskLevel


class ResponseSchemaChecker:
    """
    Contract check for the outbound analysis payload.

    Returns violation strings; the caller appends them to the response's
    validation_errors and still returns the computed risk and plan.
    """

    def check(self, response: AnalysisResponse) -> List[str]:
        try:
            AnalysisResponse.model_validate(response.model_dump())
        except ValidationError as e:
            return [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]

        errors = []
        if response.risk_level == RiskLevel.INVALID:
            return errors

        if response.risk_score < 0:
            errors.append("risk_score must be non-negative")
        if not response.recommended_plan.medication:
            errors.append("recommended_plan.medication is required")
        if not 0.0 <= response.confidence <= 1.0:
            errors.append("confidence must be between 0 and 1")
        for i, alt in enumerate(response.alternatives):
            if alt.confidence is None:
                errors.append(f"alternatives.{i}.confidence is required")
            elif not 0.0 <= alt.confidence <= 1.0:
                errors.append(f"alternatives.{i}.confidence must be between 0 and 1")
        if not response.audit_id:
            errors.append("audit_id is required")
        if not response.audited_at:
            errors.append("audited_at is required")
        return errors

"""
Exception hierarchy for the clinical assistant.

None of these are fatal to the process: the pipeline catches them at its
seams and the API turns them into JSON bodies via `to_dict()`.
"""
from typing import Any, Dict, List, Optional


class ClinicalAssistError(Exception):
    """Base exception carrying a machine-readable code."""

    def __init__(
        self,
        message: str,
        code: str = "internal_error",
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details if details is not None else {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class IntakeValidationError(ClinicalAssistError):
    """Intake is missing required fields; caller may resubmit."""

    def __init__(self, violations: List[str]):
        super().__init__(
            message="Intake failed validation",
            code="validation_failed",
            details=list(violations),
        )
        self.violations = list(violations)


class AuditStoreError(ClinicalAssistError):
    """Audit backend could not read or write."""

    def __init__(self, message: str, backend: str = "unknown"):
        super().__init__(
            message=message,
            code="audit_store_error",
            details={"backend": backend},
        )
        self.backend = backend


class ConfidenceProviderError(ClinicalAssistError):
    """Remote confidence scorer failed or returned an unusable payload."""

    def __init__(self, message: str, provider: str = "unknown"):
        super().__init__(
            message=message,
            code="confidence_provider_error",
            details={"provider": provider},
        )
        self.provider = provider

# backend/clinassist/schemas.py
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

IssueType = Literal[
    "bmi",
    "blood_pressure",
    "cardiac_history",
    "renal_impairment",
    "hepatic_impairment",
    "metabolic_risk",
    "age_related",
    "lifestyle",
    "alcohol",
    "contraindication",
    "drug_interaction",
    "cardiac_clearance",
    "allergy",
    "dose_cap",
]

Severity = Literal["danger", "warning", "info"]


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    INVALID = "INVALID"


class Medication(BaseModel):
    name: str = ""
    dosage: str = ""
    frequency: str = ""


class Intake(BaseModel):
    """
    Patient intake as posted by the clinician form.

    Every field is defaulted so an empty payload reaches the validator
    instead of failing request parsing. `allergies=None` means the field
    was never filled in; `[]` means "no known allergies".
    """
    patient_name: str = ""
    age: int = 0
    weight: float = 0.0  # kg
    height: float = 0.0  # cm
    bp: str = ""
    bmi: float = 0.0
    conditions: List[str] = []
    allergies: Optional[List[str]] = None
    medications: List[Medication] = []
    smoking: str = ""
    alcohol: str = ""
    exercise: str = ""
    complaint: str = ""
    user_id: Optional[str] = None


class Issue(BaseModel):
    type: IssueType
    severity: Severity
    description: str


class Plan(BaseModel):
    medication: str = ""
    dosage: str = ""
    frequency: str = ""
    duration: str = ""
    rationale: str = ""


class Alternative(BaseModel):
    medication: str
    dosage: str
    pros: List[str] = []
    cons: List[str] = []
    confidence: Optional[float] = None


class AnalysisResponse(BaseModel):
    risk_level: RiskLevel
    risk_score: int = 0
    flagged_issues: List[Issue] = []
    recommended_plan: Plan = Field(default_factory=Plan)
    confidence: float = 0.0
    alternatives: List[Alternative] = []
    computed_bmi: float = 0.0
    audit_id: Optional[str] = None
    audited_at: Optional[str] = None
    validation_errors: List[str] = []


class AuditEntry(BaseModel):
    patient_ref: str
    complaint: str
    risk_level: RiskLevel
    risk_score: int
    user_id: Optional[str] = None
    audit_id: Optional[str] = None
    at: Optional[str] = None


class AuditSummary(BaseModel):
    audit_id: str
    patient_ref: str
    complaint: str
    risk_level: RiskLevel
    risk_score: int
    user_id: Optional[str] = None
    at: str


class ValidationFailure(BaseModel):
    error: str = "validation_failed"
    message: str
    details: List[str] = []

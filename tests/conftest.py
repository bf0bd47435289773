"""
Pytest Configuration and Fixtures

Shared intakes and a fresh analyzer/audit store per test.
"""
import pytest

from clinassist.schemas import Intake, Medication
from clinassist.services.audit import MemoryAuditStore
from clinassist.services.pipeline import ClinicalAnalyzer


@pytest.fixture
def audit_store() -> MemoryAuditStore:
    return MemoryAuditStore(retention=50, page_size=10)


@pytest.fixture
def analyzer(audit_store) -> ClinicalAnalyzer:
    return ClinicalAnalyzer(audit_store=audit_store)


@pytest.fixture
def amlodipine_ed_intake() -> Intake:
    """Scenario A: controlled hypertensive on amlodipine asking about ED."""
    return Intake(
        patient_name="Juan Dela Cruz",
        age=45,
        weight=78,
        height=175,
        bp="135/88",
        conditions=["Hypertension"],
        medications=[Medication(name="Amlodipine", dosage="5mg", frequency="Daily")],
        complaint="ED",
    )


@pytest.fixture
def nitrate_ed_intake() -> Intake:
    """Scenario B: cardiac patient on nitroglycerin asking about ED."""
    return Intake(
        patient_name="High Risk",
        age=68,
        weight=90,
        height=170,
        bp="168/102",
        conditions=["Heart Disease", "Hypertension"],
        medications=[Medication(name="Nitroglycerin", dosage="0.4mg", frequency="PRN")],
        complaint="ED",
    )


@pytest.fixture
def weight_loss_intake() -> Intake:
    """Scenario C: obese hypertensive asking about weight loss."""
    return Intake(
        patient_name="Weight Loss",
        age=50,
        weight=110,
        height=175,
        bp="150/95",
        conditions=["Hypertension"],
        complaint="Weight Loss",
    )


@pytest.fixture
def healthy_intake() -> Intake:
    """Baseline adult with nothing to flag."""
    return Intake(
        patient_name="Ana Reyes",
        age=30,
        weight=65,
        height=170,
        bp="118/76",
        allergies=[],
        complaint="checkup",
    )

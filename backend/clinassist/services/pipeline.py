# backend/clinassist/services/pipeline.py
"""
Intake -> validation -> scoring -> plan -> interactions/allergies ->
confidence -> response -> audit.

ClinicalAnalyzer holds no per-request state; the audit store is the only
shared resource and it is injected, so tests can hand in a fresh one.
"""
import logging
import math
from typing import List, Optional

from clinassist.exceptions import AuditStoreError, ClinicalAssistError
from clinassist.schemas import (
    AnalysisResponse,
    AuditEntry,
    AuditSummary,
    Intake,
    RiskLevel,
)
from clinassist.services.audit import (
    AuditStore,
    MemoryAuditStore,
    new_audit_id,
    redact_patient,
    utc_timestamp,
)
from clinassist.services.confidence import (
    ConfidenceProvider,
    ConfidenceResult,
    HeuristicConfidenceProvider,
)
from clinassist.services.metrics import compute_bmi
from clinassist.services.plans import PlanContext, build_plan
from clinassist.services.schema_check import ResponseSchemaChecker
from clinassist.services.scoring import (
    ScoreCard,
    build_context,
    classify_risk,
    score_patient,
    score_treatment,
)
from clinassist.services.validation import validate_intake

log = logging.getLogger("pipeline")


class ClinicalAnalyzer:

    def __init__(
        self,
        audit_store: Optional[AuditStore] = None,
        confidence_provider: Optional[ConfidenceProvider] = None,
        schema_checker: Optional[ResponseSchemaChecker] = None,
    ):
        self.audit_store = audit_store if audit_store is not None else MemoryAuditStore()
        self.confidence_provider = confidence_provider or HeuristicConfidenceProvider()
        self.schema_checker = schema_checker or ResponseSchemaChecker()
        self._fallback_confidence = HeuristicConfidenceProvider()

    def analyze(self, intake: Intake) -> AnalysisResponse:
        errors = validate_intake(intake)
        if errors:
            log.info("analysis rejected: %d validation error(s)", len(errors))
            return AnalysisResponse(risk_level=RiskLevel.INVALID, risk_score=0, validation_errors=errors)

        bmi = intake.bmi if math.isfinite(intake.bmi) and intake.bmi > 0 else compute_bmi(intake.weight, intake.height)
        ctx = build_context(intake, bmi)

        card = ScoreCard()
        score_patient(ctx, card)

        plan, alternatives = build_plan(
            intake.complaint,
            PlanContext(
                bmi=bmi,
                has_nitrate=ctx.has_nitrate,
                has_heart_disease="heart disease" in ctx.conditions,
                has_renal="kidney disease" in ctx.conditions,
                has_hepatic="liver disease" in ctx.conditions,
            ),
        )
        ctx = ctx.with_treatment(plan, alternatives)
        score_treatment(ctx, card)

        # advisory only: computed after score and plan are final
        confidence = self._score_confidence(intake, plan, alternatives)
        alternatives = [
            alt.model_copy(update={"confidence": conf})
            for alt, conf in zip(alternatives, confidence.alternatives)
        ]

        response = AnalysisResponse(
            risk_level=classify_risk(card.score),
            risk_score=card.score,
            flagged_issues=card.issues,
            recommended_plan=plan,
            confidence=confidence.plan,
            alternatives=alternatives,
            computed_bmi=round(bmi, 2),
            audit_id=new_audit_id(),
            audited_at=utc_timestamp(),
        )
        response.validation_errors.extend(self.schema_checker.check(response))

        self._record(intake, response)
        return response

    def latest_audits(self, limit: Optional[int] = None) -> List[AuditSummary]:
        return self.audit_store.latest(limit)

    def _score_confidence(self, intake, plan, alternatives) -> ConfidenceResult:
        try:
            result = self.confidence_provider.score(intake, plan, alternatives)
        except ClinicalAssistError as e:
            log.warning("confidence provider %s failed: %s", self.confidence_provider.name, e.message)
            return self._fallback_confidence.score(intake, plan, alternatives)
        if len(result.alternatives) != len(alternatives):
            log.warning(
                "confidence provider %s returned %d scores for %d alternatives",
                self.confidence_provider.name, len(result.alternatives), len(alternatives),
            )
            return self._fallback_confidence.score(intake, plan, alternatives)
        return result

    def _record(self, intake: Intake, response: AnalysisResponse) -> None:
        patient_ref = redact_patient(intake.patient_name)
        entry = AuditEntry(
            audit_id=response.audit_id,
            at=response.audited_at,
            patient_ref=patient_ref,
            complaint=intake.complaint,
            risk_level=response.risk_level,
            risk_score=response.risk_score,
            user_id=intake.user_id,
        )
        try:
            self.audit_store.insert(entry)
        except AuditStoreError as e:
            log.error("Failed to save audit %s: %s", response.audit_id, e.message)
            return
        log.info(
            "analysis audit_id=%s patient=%s complaint=%s risk=%s score=%d",
            response.audit_id, patient_ref, intake.complaint,
            response.risk_level.value, response.risk_score,
        )

# backend/clinassist/services/scoring.py
"""
Additive risk scoring.

Every rule is an immutable descriptor evaluated in table order. A rule
adds its delta to the score and, when it has an issue type, appends one
Issue. Rules never short-circuit each other; order only affects how the
issue list reads.

PATIENT_RULES need nothing but the intake. TREATMENT_RULES run after
plan selection and look at the chosen plan as well.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple

from clinassist.schemas import Alternative, Intake, Issue, Medication, Plan, RiskLevel
from clinassist.services import dose_rules, interactions
from clinassist.services.metrics import parse_blood_pressure
from clinassist.services.plans import uses_pde5

log = logging.getLogger("scoring")

BASELINE_SCORE = 1
HIGH_RISK_SCORE = 8
MEDIUM_RISK_SCORE = 4

NITRATE_NAMES = ("nitroglycerin", "isosorbide", "nitrate")
ALLERGY_PLAN_DELTA = 3
DOSE_CAP_DELTA = 2


def to_set(values: Optional[Sequence[str]]) -> FrozenSet[str]:
    out = set()
    for v in values or []:
        key = (v or "").strip().lower()
        if key:
            out.add(key)
    return frozenset(out)


def normalize_meds(meds: Sequence[Medication]) -> FrozenSet[str]:
    return to_set([m.name for m in meds])


def has_nitrate(med_names: FrozenSet[str]) -> bool:
    return any(n in med for med in med_names for n in NITRATE_NAMES)


@dataclass(frozen=True)
class ScoringContext:
    """Facts derived once from the intake; the intake itself is never touched."""
    bp_text: str
    bmi: float
    systolic: int
    diastolic: int
    age: int
    conditions: FrozenSet[str]
    med_names: FrozenSet[str]
    medications: Tuple[Medication, ...]
    allergies: Optional[Tuple[str, ...]]
    smoking: str
    alcohol: str
    has_nitrate: bool
    plan: Optional[Plan] = None
    alternatives: Tuple[Alternative, ...] = ()

    @property
    def plan_is_pde5(self) -> bool:
        return self.plan is not None and uses_pde5(self.plan.medication)

    def with_treatment(self, plan: Plan, alternatives: Sequence[Alternative]) -> "ScoringContext":
        return replace(self, plan=plan, alternatives=tuple(alternatives))


def build_context(intake: Intake, bmi: float) -> ScoringContext:
    systolic, diastolic = parse_blood_pressure(intake.bp)
    med_names = normalize_meds(intake.medications)
    return ScoringContext(
        bp_text=intake.bp,
        bmi=bmi,
        systolic=systolic,
        diastolic=diastolic,
        age=intake.age,
        conditions=to_set(intake.conditions),
        med_names=med_names,
        medications=tuple(m.model_copy() for m in intake.medications),
        allergies=tuple(intake.allergies) if intake.allergies is not None else None,
        smoking=(intake.smoking or "").strip().lower(),
        alcohol=(intake.alcohol or "").strip().lower(),
        has_nitrate=has_nitrate(med_names),
    )


@dataclass
class ScoreCard:
    score: int = BASELINE_SCORE
    issues: List[Issue] = field(default_factory=list)

    def add(self, delta: int, issue_type: Optional[str] = None, severity: str = "info", description: str = ""):
        self.score += delta
        if issue_type:
            self.issues.append(Issue(type=issue_type, severity=severity, description=description))


@dataclass(frozen=True)
class RiskRule:
    name: str
    delta: int
    applies: Callable[[ScoringContext], bool]
    issue_type: Optional[str] = None
    severity: str = "info"
    describe: Callable[[ScoringContext], str] = lambda ctx: ""

    def evaluate(self, ctx: ScoringContext, card: ScoreCard) -> bool:
        if not self.applies(ctx):
            return False
        card.add(self.delta, self.issue_type, self.severity, self.describe(ctx) if self.issue_type else "")
        return True


def _bp_crisis(ctx: ScoringContext) -> bool:
    return ctx.systolic >= 160 or ctx.diastolic >= 100


def _bp_elevated(ctx: ScoringContext) -> bool:
    return not _bp_crisis(ctx) and (ctx.systolic >= 140 or ctx.diastolic >= 90)


PATIENT_RULES: Tuple[RiskRule, ...] = (
    RiskRule(
        name="bmi_obese",
        delta=2,
        applies=lambda ctx: ctx.bmi >= 30,
        issue_type="bmi",
        severity="warning",
        describe=lambda ctx: (
            f"BMI {ctx.bmi:.1f} indicates obesity; consider dose adjustments and "
            "monitor cardiovascular risk."
        ),
    ),
    RiskRule(
        name="bmi_elevated",
        delta=1,
        applies=lambda ctx: 27 <= ctx.bmi < 30,
        issue_type="bmi",
        severity="info",
        describe=lambda ctx: (
            f"BMI {ctx.bmi:.1f} is elevated; encourage lifestyle optimization alongside therapy."
        ),
    ),
    RiskRule(
        name="bp_uncontrolled",
        delta=3,
        applies=_bp_crisis,
        issue_type="blood_pressure",
        severity="danger",
        describe=lambda ctx: (
            f"Blood pressure {ctx.bp_text} suggests uncontrolled hypertension. Optimize BP "
            "before initiating risk-increasing meds."
        ),
    ),
    RiskRule(
        name="bp_elevated",
        delta=2,
        applies=_bp_elevated,
        issue_type="blood_pressure",
        severity="warning",
        describe=lambda ctx: (
            f"Blood pressure {ctx.bp_text} is elevated; monitor closely when adjusting "
            "vasoactive medications."
        ),
    ),
    RiskRule(
        name="heart_disease",
        delta=3,
        applies=lambda ctx: "heart disease" in ctx.conditions,
        issue_type="cardiac_history",
        severity="danger",
        describe=lambda ctx: (
            "History of heart disease: ensure cardiac clearance before vasoactive or "
            "androgen-modifying therapy."
        ),
    ),
    RiskRule(
        name="kidney_disease",
        delta=2,
        applies=lambda ctx: "kidney disease" in ctx.conditions,
        issue_type="renal_impairment",
        severity="warning",
        describe=lambda ctx: "Kidney disease: prefer conservative dosing and avoid nephrotoxic combinations.",
    ),
    RiskRule(
        name="liver_disease",
        delta=2,
        applies=lambda ctx: "liver disease" in ctx.conditions,
        issue_type="hepatic_impairment",
        severity="warning",
        describe=lambda ctx: "Liver disease: consider lower starting doses and monitor LFTs where applicable.",
    ),
    RiskRule(
        name="diabetes",
        delta=1,
        applies=lambda ctx: "diabetes" in ctx.conditions,
        issue_type="metabolic_risk",
        severity="info",
        describe=lambda ctx: "Diabetes increases cardiovascular risk; reinforce glycemic and lifestyle control.",
    ),
    RiskRule(
        name="hypertension",
        delta=1,
        applies=lambda ctx: "hypertension" in ctx.conditions,
    ),
    RiskRule(
        name="age_over_65",
        delta=2,
        applies=lambda ctx: ctx.age > 65,
        issue_type="age_related",
        severity="info",
        describe=lambda ctx: (
            "Age >65: start low, go slow with vasoactive agents; monitor for orthostatic changes."
        ),
    ),
    RiskRule(
        name="age_55_to_65",
        delta=1,
        applies=lambda ctx: 55 <= ctx.age <= 65,
    ),
    RiskRule(
        name="current_smoker",
        delta=1,
        applies=lambda ctx: ctx.smoking == "current",
        issue_type="lifestyle",
        severity="info",
        describe=lambda ctx: "Current smoker: encourage cessation; adds cardiovascular risk.",
    ),
    RiskRule(
        name="heavy_alcohol",
        delta=1,
        applies=lambda ctx: ctx.alcohol == "heavy",
        issue_type="alcohol",
        severity="info",
        describe=lambda ctx: "Heavy alcohol use: counsel moderation; may worsen BP and medication tolerance.",
    ),
    RiskRule(
        name="nitrate_therapy",
        delta=5,
        applies=lambda ctx: ctx.has_nitrate,
        issue_type="contraindication",
        severity="danger",
        describe=lambda ctx: (
            "Nitrate therapy: PDE5 inhibitors are contraindicated. Avoid tadalafil/sildenafil "
            "and coordinate cardiology care."
        ),
    ),
)

TREATMENT_RULES: Tuple[RiskRule, ...] = (
    RiskRule(
        name="pde5_amlodipine",
        delta=1,
        applies=lambda ctx: ctx.plan_is_pde5 and "amlodipine" in ctx.med_names,
        issue_type="drug_interaction",
        severity="warning",
        describe=lambda ctx: (
            "PDE5 inhibitor may enhance the hypotensive effect of amlodipine. Monitor BP "
            "closely during initiation."
        ),
    ),
    RiskRule(
        name="pde5_tamsulosin",
        delta=1,
        applies=lambda ctx: ctx.plan_is_pde5 and "tamsulosin" in ctx.med_names,
        issue_type="drug_interaction",
        severity="warning",
        describe=lambda ctx: (
            "PDE5 inhibitor with tamsulosin (alpha-blocker) adds blood-pressure lowering; "
            "separate dosing and warn about dizziness on standing."
        ),
    ),
    RiskRule(
        name="pde5_cardiac_clearance",
        delta=0,
        applies=lambda ctx: ctx.plan_is_pde5 and "heart disease" in ctx.conditions,
        issue_type="cardiac_clearance",
        severity="warning",
        describe=lambda ctx: (
            "Cardiac history: confirm patient is cleared for sexual activity before PDE5 use."
        ),
    ),
    RiskRule(
        name="pde5_heavy_alcohol",
        delta=0,
        applies=lambda ctx: ctx.plan_is_pde5 and ctx.alcohol == "heavy",
        issue_type="alcohol",
        severity="info",
        describe=lambda ctx: (
            "Heavy alcohol with a PDE5 inhibitor increases dizziness and headache; limit "
            "drinking around doses."
        ),
    ),
)


def classify_risk(score: int) -> RiskLevel:
    if score >= HIGH_RISK_SCORE:
        return RiskLevel.HIGH
    if score >= MEDIUM_RISK_SCORE:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def apply_rules(rules: Sequence[RiskRule], ctx: ScoringContext, card: ScoreCard) -> List[str]:
    """Evaluate each rule in order; returns the names of rules that fired."""
    fired = []
    for rule in rules:
        if rule.evaluate(ctx, card):
            fired.append(rule.name)
    return fired


def score_patient(ctx: ScoringContext, card: ScoreCard) -> None:
    fired = apply_rules(PATIENT_RULES, ctx, card)
    log.debug("patient rules fired: %s", ", ".join(fired) or "none")


def score_treatment(ctx: ScoringContext, card: ScoreCard) -> None:
    """Plan-dependent rules, static interactions, allergies and dose caps."""
    if ctx.plan is None:
        return
    fired = apply_rules(TREATMENT_RULES, ctx, card)
    log.debug("treatment rules fired: %s", ", ".join(fired) or "none")

    pool = set(ctx.med_names) | set(ctx.conditions)
    if ctx.plan.medication:
        pool.add(ctx.plan.medication.lower())
    for rule in interactions.check_interactions(sorted(pool)):
        card.add(rule.delta, rule.type, rule.severity, rule.description)

    for hit in interactions.check_allergies(ctx.allergies, ctx.plan, ctx.alternatives):
        if hit.on_plan:
            card.add(
                ALLERGY_PLAN_DELTA,
                "allergy",
                "danger",
                f"Reported allergy '{hit.allergy}' matches the recommended {hit.medication}. "
                "Do not prescribe; choose a non-cross-reactive option.",
            )
        else:
            card.add(
                0,
                "allergy",
                "warning",
                f"Reported allergy '{hit.allergy}' matches alternative {hit.medication}; "
                "avoid this option.",
            )

    if dose_rules.plan_dose_exceeds_cap(ctx.plan):
        card.add(
            DOSE_CAP_DELTA,
            "dose_cap",
            "warning",
            f"{ctx.plan.medication} {ctx.plan.dosage} exceeds the "
            f"{dose_rules.PDE5_MAX_SINGLE_DOSE_MG}mg single-dose cap; reduce the dose.",
        )

    for description in dose_rules.check_medication_doses(ctx.medications, ctx.age):
        card.add(0, "dose_cap", "warning", description)

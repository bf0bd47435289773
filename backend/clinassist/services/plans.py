# backend/clinassist/services/plans.py
from dataclasses import dataclass
from typing import List, Tuple

from clinassist.schemas import Alternative, Plan

PDE5_NAMES = ("tadalafil", "sildenafil", "vardenafil")


def uses_pde5(name: str) -> bool:
    n = (name or "").lower()
    return any(drug in n for drug in PDE5_NAMES)


@dataclass(frozen=True)
class PlanContext:
    bmi: float = 0.0
    has_nitrate: bool = False
    has_heart_disease: bool = False
    has_renal: bool = False
    has_hepatic: bool = False


def build_plan(complaint: str, ctx: PlanContext) -> Tuple[Plan, List[Alternative]]:
    """Pick the primary plan and ranked alternatives for a chief complaint."""
    key = (complaint or "").strip().lower()
    if key == "ed":
        return ed_plan(ctx)
    if key == "hair loss":
        return hair_loss_plan()
    if key == "weight loss":
        return weight_loss_plan(ctx)
    return general_wellness_plan()


def ed_plan(ctx: PlanContext) -> Tuple[Plan, List[Alternative]]:
    if ctx.has_nitrate:
        plan = Plan(
            medication="Hold PDE5 inhibitors",
            dosage="N/A",
            frequency="Avoid until nitrates stopped",
            duration="Reassess after nitrate-free period",
            rationale=(
                "Nitrate therapy makes PDE5 inhibitors unsafe. Prioritize cardiology "
                "review and lifestyle optimization for ED."
            ),
        )
        alts = [
            Alternative(
                medication="Lifestyle & psychosexual therapy",
                dosage="N/A",
                pros=["No hemodynamic risk", "Addresses vascular + psychogenic factors"],
                cons=["Slower onset of benefit"],
            ),
            Alternative(
                medication="Vacuum erection device",
                dosage="Device-assisted",
                pros=["Non-pharmacologic", "No drug interactions"],
                cons=["Less spontaneity", "Training required"],
            ),
        ]
        return plan, alts

    dose = "10mg"
    if ctx.has_renal or ctx.has_hepatic:
        dose = "5mg (start low due to renal/hepatic risk)"

    rationale = (
        "First-line PDE5 inhibitor; long half-life for flexibility. Start low to "
        "minimize hypotension risk; reinforce BP monitoring."
    )
    if ctx.has_heart_disease:
        rationale += " Cardiac history: ensure clearance before sexual activity."
    if ctx.bmi >= 27:
        rationale += " Encourage weight and activity changes to improve ED and cardiometabolic profile."

    plan = Plan(
        medication="Tadalafil",
        dosage=dose,
        frequency="As needed, 30-60 minutes before sexual activity",
        duration="30-day supply, renew after follow-up",
        rationale=rationale,
    )
    alts = [
        Alternative(
            medication="Sildenafil",
            dosage="50mg as needed (25mg if sensitive)",
            pros=["Lower cost", "Shorter duration if side effects occur"],
            cons=["Shorter window (4-6h)", "Requires timing around meals"],
        ),
        Alternative(
            medication="Tadalafil (daily)",
            dosage="5mg once daily",
            pros=["Continuous effect", "Supports spontaneity", "May aid urinary symptoms"],
            cons=["Daily commitment", "Higher cumulative cost"],
        ),
    ]
    return plan, alts


def hair_loss_plan() -> Tuple[Plan, List[Alternative]]:
    plan = Plan(
        medication="Finasteride",
        dosage="1mg orally once daily",
        frequency="Daily",
        duration="3-6 months before full effect",
        rationale=(
            "DHT blocker with best evidence for male pattern hair loss. Monitor for "
            "sexual side effects; avoid if trying to conceive."
        ),
    )
    alts = [
        Alternative(
            medication="Topical Minoxidil 5%",
            dosage="Apply to scalp twice daily",
            pros=["OTC", "Safe for many patients"],
            cons=["Requires adherence", "Shedding may transiently increase"],
        ),
        Alternative(
            medication="Low-level laser therapy",
            dosage="Per device guidance",
            pros=["Non-drug option"],
            cons=["Variable evidence", "Cost"],
        ),
    ]
    return plan, alts


def weight_loss_plan(ctx: PlanContext) -> Tuple[Plan, List[Alternative]]:
    rationale = (
        "Calorie deficit with structured activity. Metformin aids insulin "
        "sensitivity; start low to reduce GI effects."
    )
    if ctx.bmi >= 35:
        rationale += " Consider GLP-1 RA if no contraindications and coverage allows."

    plan = Plan(
        medication="Metformin",
        dosage="500mg with dinner, uptitrate as tolerated",
        frequency="Once daily start; can increase to BID",
        duration="12-week trial with reassessment",
        rationale=rationale,
    )
    alts = [
        Alternative(
            medication="GLP-1 receptor agonist",
            dosage="Per product labeling (e.g., weekly titration)",
            pros=["Robust weight loss", "Cardiometabolic benefit"],
            cons=["Cost/coverage", "GI side effects", "Avoid in medullary thyroid cancer history"],
        ),
        Alternative(
            medication="Intensive lifestyle program",
            dosage="Nutrition + activity + sleep plan",
            pros=["Foundational", "No drug interactions"],
            cons=["Requires adherence", "Slower results"],
        ),
    ]
    return plan, alts


def general_wellness_plan() -> Tuple[Plan, List[Alternative]]:
    plan = Plan(
        medication="Preventive care focus",
        dosage="N/A",
        frequency="Per guideline schedule",
        duration="Ongoing",
        rationale=(
            "No specific complaint provided. Recommend preventive screening, lifestyle "
            "optimization, and targeted labs based on history."
        ),
    )
    alts = [
        Alternative(
            medication="Lifestyle coaching",
            dosage="Weekly sessions",
            pros=["Addresses root causes", "No drug risk"],
            cons=["Requires patient engagement"],
        ),
    ]
    return plan, alts

# backend/clinassist/services/dose_rules.py
from typing import List, Sequence

from clinassist.schemas import Medication, Plan
from clinassist.services.metrics import parse_dose_mg, parse_frequency_per_day
from clinassist.services.plans import uses_pde5

# Single on-demand PDE5 dose above this is flagged
PDE5_MAX_SINGLE_DOSE_MG = 20

DOSE_LIMITS = {
    "warfarin": {
        "standard_max_mg_per_day": 10,
        "elderly_max_mg_per_day": 5,
        "notes": "High bleeding risk; monitor INR.",
    },
    "ibuprofen": {
        "standard_max_mg_per_day": 3200,
        "notes": "GI bleeding and renal risk at high doses.",
    },
    "simvastatin": {
        "standard_max_mg_per_day": 40,
        "elderly_max_mg_per_day": 20,
        "notes": "80mg linked to high myopathy risk.",
    },
    "aspirin": {
        "standard_max_mg_per_day": 4000,
        "notes": "High GI bleeding risk.",
    },
}

ELDERLY_AGE = 65


def plan_dose_exceeds_cap(plan: Plan) -> bool:
    """PDE5 plan whose parsed dose is above the single-dose cap. Unparsable dose never fires."""
    if not uses_pde5(plan.medication):
        return False
    return parse_dose_mg(plan.dosage) > PDE5_MAX_SINGLE_DOSE_MG


def check_medication_doses(meds: Sequence[Medication], age: int) -> List[str]:
    """
    Compare each current medication's daily total against DOSE_LIMITS.

    Returns one description per medication over its cap.
    """
    issues = []
    for m in meds:
        drug_name = (m.name or "").strip().lower()
        limits = None
        for key, value in DOSE_LIMITS.items():
            if key in drug_name:
                limits = value
                break
        if limits is None:
            continue

        per_dose = parse_dose_mg(m.dosage)
        if per_dose <= 0:
            continue
        daily_dose = per_dose * parse_frequency_per_day(m.frequency)

        cap = limits["standard_max_mg_per_day"]
        if age > ELDERLY_AGE and "elderly_max_mg_per_day" in limits:
            cap = limits["elderly_max_mg_per_day"]

        if daily_dose > cap:
            issues.append(
                f"{m.name} {daily_dose:g} mg/day exceeds the {cap} mg/day limit. {limits['notes']}"
            )
    return issues

# backend/clinassist/services/interactions.py
import json
import logging
import os
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from clinassist.schemas import Alternative, Plan

log = logging.getLogger("interactions")

HERE = os.path.dirname(__file__)
DATA_PATH = os.path.join(HERE, "..", "data", "interaction_rules.json")


@dataclass(frozen=True)
class InteractionRule:
    a: str
    b: str
    type: str
    severity: str
    delta: int
    description: str


@dataclass(frozen=True)
class AllergyHit:
    allergy: str
    medication: str
    on_plan: bool


def load_interaction_rules(path: str = DATA_PATH) -> Tuple[InteractionRule, ...]:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return tuple(
        InteractionRule(
            a=r["a"].lower(),
            b=r["b"].lower(),
            type=r["type"],
            severity=r["severity"],
            delta=int(r.get("delta", 0)),
            description=r["description"],
        )
        for r in raw
    )


# try load, else run without the static table
try:
    INTERACTION_RULES = load_interaction_rules()
except (OSError, ValueError, KeyError) as e:
    log.error("Could not load interaction rules from %s: %s", DATA_PATH, e)
    INTERACTION_RULES = ()


def _present(term: str, pool: Iterable[str]) -> bool:
    return any(term in item for item in pool)


def check_interactions(
    pool: Sequence[str],
    rules: Sequence[InteractionRule] = None,
) -> List[InteractionRule]:
    """
    Return every static rule whose two sides both appear in the pool.

    The pool is lower-cased text: current medication names, the selected
    plan medication and condition labels. Matching is by substring.
    """
    if rules is None:
        rules = INTERACTION_RULES
    hits = []
    for rule in rules:
        if _present(rule.a, pool) and _present(rule.b, pool):
            hits.append(rule)
    return hits


def match_allergy(allergies: Optional[Sequence[str]], medication: str) -> Optional[str]:
    """
    First allergy whose text appears in the medication name, case-insensitive.

    Later matches against the same medication are not reported.
    """
    med = (medication or "").lower()
    if not med:
        return None
    for allergy in allergies or []:
        term = (allergy or "").strip()
        if not term:
            continue
        if term.lower() in med:
            return term
    return None


def check_allergies(
    allergies: Optional[Sequence[str]],
    plan: Plan,
    alternatives: Sequence[Alternative],
) -> List[AllergyHit]:
    hits = []
    allergy = match_allergy(allergies, plan.medication)
    if allergy:
        hits.append(AllergyHit(allergy=allergy, medication=plan.medication, on_plan=True))
    for alt in alternatives:
        allergy = match_allergy(allergies, alt.medication)
        if allergy:
            hits.append(AllergyHit(allergy=allergy, medication=alt.medication, on_plan=False))
    return hits

# backend/clinassist/services/confidence.py
"""
Advisory confidence for the recommended plan and its alternatives.

A provider only annotates: it receives the finalized intake, plan and
alternatives and returns numbers. It never sees or changes the score, the
issues or the plan choice, so any provider (the heuristic below, or a
model-backed service) can be swapped in without touching the rules.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Sequence

import requests

from clinassist.exceptions import ConfidenceProviderError
from clinassist.schemas import Alternative, Intake, Plan

log = logging.getLogger("confidence")

COVERAGE_BASE = 0.60
COVERAGE_STEP = 0.05
PLAN_MAX = 0.95
ALT_DECAY = 0.05
ALT_MIN = 0.40
ALT_MAX = 0.90


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass
class ConfidenceResult:
    plan: float
    alternatives: List[float] = field(default_factory=list)


class ConfidenceProvider:
    """Interface: given intake + plan + alternatives, produce confidences."""

    name = "base"

    def score(self, intake: Intake, plan: Plan, alternatives: Sequence[Alternative]) -> ConfidenceResult:
        raise NotImplementedError


class HeuristicConfidenceProvider(ConfidenceProvider):
    """
    Deterministic stand-in for a model scorer.

    Confidence grows with how much of the intake was filled in: blood
    pressure, conditions, medications, and whether allergies were asked
    about at all (an explicit empty list counts, an unset field does not).
    """

    name = "heuristic"

    def coverage(self, intake: Intake) -> float:
        coverage = COVERAGE_BASE
        if (intake.bp or "").strip():
            coverage += COVERAGE_STEP
        if intake.conditions:
            coverage += COVERAGE_STEP
        if intake.medications:
            coverage += COVERAGE_STEP
        if intake.allergies is not None:
            coverage += COVERAGE_STEP
        return coverage

    def score(self, intake: Intake, plan: Plan, alternatives: Sequence[Alternative]) -> ConfidenceResult:
        plan_conf = clamp(0.55 + self.coverage(intake) * 0.3, 0.0, PLAN_MAX)
        alt_confs = [
            round(clamp(plan_conf - ALT_DECAY * (rank + 1), ALT_MIN, ALT_MAX), 2)
            for rank in range(len(alternatives))
        ]
        return ConfidenceResult(plan=round(plan_conf, 2), alternatives=alt_confs)


class RemoteConfidenceProvider(ConfidenceProvider):
    """
    Ask an external (LLM-backed) scorer for confidences.

    Expected reply: {"plan": 0.8, "alternatives": [0.7, 0.6]}. Any transport
    error or malformed reply falls back to the heuristic.
    """

    name = "remote"

    def __init__(self, url: str, api_key: str = "", timeout: float = 5.0, fallback: ConfidenceProvider = None):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.fallback = fallback or HeuristicConfidenceProvider()

    def _request(self, intake: Intake, plan: Plan, alternatives: Sequence[Alternative]) -> ConfidenceResult:
        payload = {
            "intake": intake.model_dump(),
            "plan": plan.model_dump(),
            "alternatives": [a.model_dump(exclude={"confidence"}) for a in alternatives],
        }
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            r = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise ConfidenceProviderError(f"Confidence request failed: {e}", provider=self.name) from e

        try:
            plan_conf = clamp(float(data["plan"]), 0.0, 1.0)
            alt_confs = [clamp(float(c), 0.0, 1.0) for c in data.get("alternatives", [])]
        except (KeyError, TypeError, ValueError) as e:
            raise ConfidenceProviderError(f"Malformed confidence payload: {e}", provider=self.name) from e

        if len(alt_confs) != len(alternatives):
            raise ConfidenceProviderError(
                f"Expected {len(alternatives)} alternative confidences, got {len(alt_confs)}",
                provider=self.name,
            )
        return ConfidenceResult(plan=plan_conf, alternatives=alt_confs)

    def score(self, intake: Intake, plan: Plan, alternatives: Sequence[Alternative]) -> ConfidenceResult:
        try:
            return self._request(intake, plan, alternatives)
        except ConfidenceProviderError as e:
            log.warning("Remote confidence unavailable, using %s: %s", self.fallback.name, e.message)
            return self.fallback.score(intake, plan, alternatives)

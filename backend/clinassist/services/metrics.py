# backend/clinassist/services/metrics.py
import re
from typing import Optional, Tuple

# Common medical abbreviations for dosage frequency
FREQ_ABBREV_MAP = {
    "od": 1,    # once daily
    "qd": 1,
    "daily": 1,
    "once daily": 1,
    "hs": 1,    # at bedtime (once daily)
    "bd": 2,    # twice daily
    "bid": 2,
    "twice daily": 2,
    "tds": 3,   # three times daily
    "tid": 3,
    "qid": 4,   # four times daily
    "prn": None,  # as needed, no fixed daily count
    "as needed": None,
}

BP_PATTERN = re.compile(r"(\d{2,3})\s*/\s*(\d{2,3})", re.IGNORECASE)
DOSE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(mg|mcg|µg|ug|g)\b", re.IGNORECASE)
# "2x/week" and "3x weekly" are not daily counts
TIMES_PATTERN = re.compile(r"(\d+)\s*x(?!\s*(?:/\s*w|per\s+w|a\s+w|weekly))", re.IGNORECASE)


def compute_bmi(weight_kg: float, height_cm: float) -> float:
    """Body mass index from kg and cm; 0 when either input is non-positive."""
    if weight_kg <= 0 or height_cm <= 0:
        return 0.0
    m = height_cm / 100.0
    return weight_kg / (m * m)


def parse_blood_pressure(text: Optional[str]) -> Tuple[int, int]:
    """
    Extract (systolic, diastolic) from free text like "135/88" or "BP 150 / 95".

    Returns (0, 0) when nothing matches. Callers treat that as "no BP
    signal", not as a reading of zero.
    """
    if not text:
        return 0, 0
    match = BP_PATTERN.search(text)
    if not match:
        return 0, 0
    return int(match.group(1)), int(match.group(2))


def normalize_strength_unit(strength: float, unit: str) -> float:
    """Convert a strength to milligrams."""
    unit = unit.lower()
    if unit == "g":
        return strength * 1000.0
    if unit in ("mcg", "µg", "ug"):
        return strength / 1000.0
    return strength


def parse_dose_mg(text: Optional[str]) -> float:
    """
    First milligram quantity in a dosage string ("10mg", "0.4 mg", "1 g").

    Unparsable text yields 0.0 so dose checks simply do not fire.
    """
    if not text:
        return 0.0
    match = DOSE_PATTERN.search(text)
    if not match:
        return 0.0
    return normalize_strength_unit(float(match.group(1)), match.group(2))


def parse_frequency_per_day(text: Optional[str]) -> int:
    """Doses per day from a frequency string; 1 when unknown or as-needed."""
    freq = (text or "").strip().lower()
    if not freq:
        return 1
    if freq in FREQ_ABBREV_MAP:
        return FREQ_ABBREV_MAP[freq] or 1
    times = TIMES_PATTERN.search(freq)
    if times:
        return max(int(times.group(1)), 1)
    for token in re.split(r"[\s,;]+", freq):
        if FREQ_ABBREV_MAP.get(token):
            return FREQ_ABBREV_MAP[token]
    return 1

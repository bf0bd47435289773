"""
Unit Tests for metric calculators and free-text parsing.
"""
import pytest

from clinassist.services.metrics import (
    compute_bmi,
    parse_blood_pressure,
    parse_dose_mg,
    parse_frequency_per_day,
)


class TestComputeBMI:

    def test_standard_bmi(self):
        assert compute_bmi(78, 175) == pytest.approx(25.47, abs=0.01)

    def test_obese_bmi(self):
        assert compute_bmi(110, 175) == pytest.approx(35.92, abs=0.01)

    @pytest.mark.parametrize("weight,height", [(0, 175), (70, 0), (-5, 170), (70, -170)])
    def test_non_positive_inputs_return_zero(self, weight, height):
        assert compute_bmi(weight, height) == 0


class TestParseBloodPressure:

    def test_plain_reading(self):
        assert parse_blood_pressure("135/88") == (135, 88)

    def test_whitespace_and_prefix(self):
        assert parse_blood_pressure("  BP 150 / 95 mmHg ") == (150, 95)

    def test_first_pair_wins(self):
        assert parse_blood_pressure("168/102 then 140/90") == (168, 102)

    @pytest.mark.parametrize("text", ["", None, "high", "1/2", "120-80"])
    def test_unparsable_is_no_signal(self, text):
        assert parse_blood_pressure(text) == (0, 0)


class TestParseDose:

    def test_milligrams(self):
        assert parse_dose_mg("10mg") == 10
        assert parse_dose_mg("0.4 mg sublingual") == pytest.approx(0.4)

    def test_grams_and_micrograms_convert(self):
        assert parse_dose_mg("1 g") == 1000
        assert parse_dose_mg("500 mcg") == pytest.approx(0.5)

    @pytest.mark.parametrize("text", ["", None, "one tablet", "N/A", "Per device guidance"])
    def test_unparsable_dose_is_zero(self, text):
        assert parse_dose_mg(text) == 0.0


class TestParseFrequency:

    @pytest.mark.parametrize("text,expected", [
        ("Daily", 1),
        ("Twice daily", 2),
        ("BID", 2),
        ("tds", 3),
        ("qid", 4),
        ("3x", 3),
        ("3x daily", 3),
        ("PRN", 1),
        ("As needed", 1),
        ("", 1),
        ("whenever", 1),
    ])
    def test_frequency(self, text, expected):
        assert parse_frequency_per_day(text) == expected

    @pytest.mark.parametrize("text", ["2x/week", "1-2x/week", "2x weekly", "3 x per week", "2x a week"])
    def test_weekly_counts_are_not_daily(self, text):
        assert parse_frequency_per_day(text) == 1

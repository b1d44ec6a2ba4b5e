"""
Tests for raw field parsing.

Parsing is total: every malformed input must come back as None, and None must
never be confused with a measured zero.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from core.domain.models import NormalizedVitals, PatientRecord
from core.domain.vitals import (
    is_missing,
    normalize_vitals,
    parse_age,
    parse_blood_pressure,
    parse_temperature,
)


class TestParseBloodPressure:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("120/80", (120, 80)),
            ("140/", (140, None)),
            ("/90", (None, 90)),
            ("INVALID/90", (None, 90)),
            ("150/N/A", (150, None)),
            (" 125 / 75 ", (125, 75)),
            ("0/70", (0, 70)),
            ("130", (130, None)),
            ("120/80/60", (120, 80)),
        ],
    )
    def test_sides_parse_independently(
        self, raw: str, expected: tuple[int | None, int | None]
    ) -> None:
        assert parse_blood_pressure(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "/", 12080, ["120", "80"], True])
    def test_absent_or_non_string_yields_both_absent(self, raw: object) -> None:
        assert parse_blood_pressure(raw) == (None, None)

    @given(st.text())
    def test_never_raises(self, raw: str) -> None:
        systolic, diastolic = parse_blood_pressure(raw)
        assert systolic is None or isinstance(systolic, int)
        assert diastolic is None or isinstance(diastolic, int)


class TestParseTemperature:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (98.6, 98.6),
            (101, 101.0),
            ("99.5", 99.5),
            ("100.2F", 100.2),
            ("  .5", 0.5),
            (0, 0.0),
        ],
    )
    def test_numeric_like_values(self, raw: object, expected: float) -> None:
        assert parse_temperature(raw) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "raw", [None, "", "not a number", "TEMP_ERROR", "F98", True, float("nan"), {}]
    )
    def test_unparseable_is_absent(self, raw: object) -> None:
        assert parse_temperature(raw) is None

    def test_measured_zero_is_not_absent(self) -> None:
        assert parse_temperature("0") == 0.0


class TestParseAge:
    @pytest.mark.parametrize(
        "raw,expected",
        [(30, 30), ("45", 45), ("70.9", 70), (66.4, 66), (" 12 years", 12), (0, 0)],
    )
    def test_numeric_like_values(self, raw: object, expected: int) -> None:
        assert parse_age(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "fifty-three", "unknown", False, float("inf")])
    def test_unparseable_is_absent(self, raw: object) -> None:
        assert parse_age(raw) is None

    @given(st.one_of(st.none(), st.text(), st.integers(), st.floats(), st.booleans()))
    def test_never_raises(self, raw: object) -> None:
        value = parse_age(raw)
        assert value is None or isinstance(value, int)


class TestIsMissing:
    @pytest.mark.parametrize("raw", [None, ""])
    def test_null_and_empty_are_missing(self, raw: object) -> None:
        assert is_missing(raw)

    @pytest.mark.parametrize("raw", ["not a number", 0, "0", " ", "INVALID/"])
    def test_present_values_are_not_missing(self, raw: object) -> None:
        assert not is_missing(raw)


def test_normalize_vitals_builds_typed_view() -> None:
    record = PatientRecord(
        patient_id="DEMO001", blood_pressure="140/", temperature="99.8", age="not a number"
    )

    assert normalize_vitals(record) == NormalizedVitals(
        systolic=140, diastolic=None, temperature=99.8, age=None
    )


def test_normalize_vitals_all_absent() -> None:
    assert normalize_vitals(PatientRecord(patient_id="DEMO002")) == NormalizedVitals()

"""
Tests for patient classification.

Covers the three independent predicates, the difference between missing and
malformed raw fields, ordering and deduplication of result sets.
"""

from __future__ import annotations

from typing import Any

import pytest

from core.domain.classification import (
    assess_patient,
    assess_patients,
    build_classification,
    classify_patients,
    has_data_quality_issue,
)
from core.domain.models import ClassificationResult, PatientRecord


def _record(patient_id: str, **fields: Any) -> PatientRecord:
    return PatientRecord(patient_id=patient_id, **fields)


@pytest.fixture
def sample_records() -> list[PatientRecord]:
    """Realistic mix of clean, noisy and missing vitals."""
    return [
        _record("DEMO001", blood_pressure="150/95", temperature=103, age=70),
        _record("DEMO002", blood_pressure="", temperature=98.0, age=30),
        _record("DEMO003", blood_pressure="125/75", temperature="not a number", age=50),
        _record("DEMO004", blood_pressure="INVALID", temperature=99.5, age=None),
        _record("DEMO005", blood_pressure="138/", temperature=100.4, age="fifty-three"),
        _record("DEMO006"),
    ]


class TestAssessPatient:
    def test_maximum_risk_patient(self) -> None:
        assessment = assess_patient(
            _record("P1", blood_pressure="150/95", temperature=103, age=70)
        )

        assert (assessment.scores.bp, assessment.scores.temperature, assessment.scores.age) == (
            4,
            2,
            2,
        )
        assert assessment.scores.total == 8
        assert assessment.high_risk
        assert assessment.fever
        assert not assessment.data_quality_issue

    def test_empty_blood_pressure_is_data_quality_only(self) -> None:
        assessment = assess_patient(_record("P2", blood_pressure="", temperature=98.0, age=30))

        assert assessment.scores.total == 1
        assert not assessment.high_risk
        assert not assessment.fever
        assert assessment.data_quality_issue

    def test_malformed_temperature_is_not_a_data_quality_issue(self) -> None:
        assessment = assess_patient(
            _record("P3", blood_pressure="125/75", temperature="not a number", age=50)
        )

        assert assessment.scores.bp == 2
        assert assessment.scores.temperature == 0
        assert assessment.scores.age == 1
        assert assessment.scores.total == 3
        assert not assessment.high_risk
        assert not assessment.fever
        assert not assessment.data_quality_issue

    def test_fever_at_99_5_contributes_no_score(self) -> None:
        assessment = assess_patient(_record("P4", blood_pressure="115/75", temperature=99.5, age=30))

        assert assessment.fever
        assert assessment.scores.temperature == 0

    def test_all_vitals_absent(self) -> None:
        assessment = assess_patient(_record("P5"))

        assert assessment.scores.total == 0
        assert not assessment.high_risk
        assert not assessment.fever
        assert assessment.data_quality_issue

    def test_threshold_is_inclusive(self) -> None:
        # bp 3 (stage 1) + age 1 = 4
        assessment = assess_patient(_record("P6", blood_pressure="135/70", temperature=98.6, age=45))
        assert assessment.scores.total == 4
        assert assessment.high_risk


class TestDataQuality:
    @pytest.mark.parametrize(
        "fields",
        [
            {"blood_pressure": None, "temperature": 98.6, "age": 40},
            {"blood_pressure": "120/80", "temperature": "", "age": 40},
            {"blood_pressure": "120/80", "temperature": 98.6, "age": ""},
            {"blood_pressure": "120/80", "temperature": None, "age": 40},
            {"blood_pressure": "120/80", "temperature": 98.6, "age": None},
            {"temperature": 98.6, "age": 40},
        ],
    )
    def test_missing_or_empty_field_is_flagged(self, fields: dict[str, Any]) -> None:
        assert has_data_quality_issue(_record("DQ", **fields))

    @pytest.mark.parametrize(
        "payload",
        [
            {"patient_id": "P2", "blood_pressure": "120/70", "temperature": 98.6},
            {"patient_id": "P3", "blood_pressure": "120/70", "age": 40},
            {"patient_id": "P4", "blood_pressure": "120/70"},
        ],
    )
    def test_absent_age_or_temperature_key_is_not_flagged(self, payload: dict[str, Any]) -> None:
        assert not has_data_quality_issue(PatientRecord.model_validate(payload))

    def test_explicit_null_from_json_is_flagged(self) -> None:
        payload = {"patient_id": "P5", "blood_pressure": "120/70", "temperature": 98.6, "age": None}
        assert has_data_quality_issue(PatientRecord.model_validate(payload))

    @pytest.mark.parametrize(
        "fields",
        [
            {"blood_pressure": "INVALID", "temperature": 98.6, "age": 40},
            {"blood_pressure": "120/80", "temperature": "TEMP_ERROR", "age": 40},
            {"blood_pressure": "120/80", "temperature": 98.6, "age": "unknown"},
            {"blood_pressure": "120/80", "temperature": 0, "age": 0},
        ],
    )
    def test_present_but_malformed_is_not_flagged(self, fields: dict[str, Any]) -> None:
        assert not has_data_quality_issue(_record("DQ", **fields))


class TestClassifyPatients:
    def test_sets_follow_traversal_order(self, sample_records: list[PatientRecord]) -> None:
        result = classify_patients(sample_records)

        assert result.high_risk == ["DEMO001", "DEMO005"]
        assert result.fever == ["DEMO001", "DEMO004", "DEMO005"]
        assert result.data_quality_issues == ["DEMO002", "DEMO004", "DEMO006"]

    def test_every_flagged_id_was_fetched(self, sample_records: list[PatientRecord]) -> None:
        result = classify_patients(sample_records)
        fetched = {record.patient_id for record in sample_records}

        for bucket in (result.high_risk, result.fever, result.data_quality_issues):
            assert set(bucket) <= fetched

    def test_classification_is_idempotent(self, sample_records: list[PatientRecord]) -> None:
        assert classify_patients(sample_records) == classify_patients(sample_records)

    def test_duplicate_ids_appear_once(self) -> None:
        record = _record("DUP", blood_pressure="150/95", temperature=103, age=70)
        result = classify_patients([record, record])

        assert result.high_risk == ["DUP"]
        assert result.fever == ["DUP"]

    def test_empty_input(self) -> None:
        assert classify_patients([]) == ClassificationResult()

    def test_build_from_assessments_matches_direct_classification(
        self, sample_records: list[PatientRecord]
    ) -> None:
        assessments = assess_patients(sample_records)
        assert build_classification(assessments) == classify_patients(sample_records)
        assert [a.patient_id for a in assessments] == [r.patient_id for r in sample_records]

    def test_payload_shape(self, sample_records: list[PatientRecord]) -> None:
        payload = classify_patients(sample_records).to_payload()

        assert set(payload) == {"high_risk_patients", "fever_patients", "data_quality_issues"}
        assert payload["high_risk_patients"] == ["DEMO001", "DEMO005"]

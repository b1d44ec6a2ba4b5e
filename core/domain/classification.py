"""
Patient classification into high-risk, fever and data-quality sets.

The three predicates are independent: a patient can land in any combination of
sets, including none.
"""

from collections.abc import Iterable

from core.domain.models import (
    ClassificationResult,
    NormalizedVitals,
    PatientAssessment,
    PatientRecord,
    RiskScoreBreakdown,
)
from core.domain.scoring import score_vitals
from core.domain.vitals import is_missing, normalize_vitals

HIGH_RISK_THRESHOLD = 4
FEVER_THRESHOLD_F = 99.5


def is_high_risk(scores: RiskScoreBreakdown) -> bool:
    return scores.total >= HIGH_RISK_THRESHOLD


def has_fever(vitals: NormalizedVitals) -> bool:
    # Checked on the parsed value, not on the temperature sub-score
    return vitals.temperature is not None and vitals.temperature >= FEVER_THRESHOLD_F


def _sent_empty(record: PatientRecord, field_name: str) -> bool:
    return field_name in record.model_fields_set and is_missing(getattr(record, field_name))


def has_data_quality_issue(record: PatientRecord) -> bool:
    """
    True when a raw vital is null or empty. Malformed values do not count.

    Blood pressure is flagged when absent altogether; age and temperature only
    when the API sent them as an explicit null or empty string.
    """
    return (
        is_missing(record.blood_pressure)
        or _sent_empty(record, "age")
        or _sent_empty(record, "temperature")
    )


def assess_patient(record: PatientRecord) -> PatientAssessment:
    """Normalize, score and evaluate all predicates for one record."""
    vitals = normalize_vitals(record)
    scores = score_vitals(vitals)
    return PatientAssessment(
        patient_id=record.patient_id,
        vitals=vitals,
        scores=scores,
        high_risk=is_high_risk(scores),
        fever=has_fever(vitals),
        data_quality_issue=has_data_quality_issue(record),
    )


def assess_patients(records: Iterable[PatientRecord]) -> list[PatientAssessment]:
    return [assess_patient(record) for record in records]


def build_classification(assessments: Iterable[PatientAssessment]) -> ClassificationResult:
    """Collect flagged identifiers in traversal order, each at most once per set."""
    result = ClassificationResult()
    seen: dict[str, set[str]] = {"high_risk": set(), "fever": set(), "data_quality_issues": set()}

    def _append(bucket: str, patient_id: str) -> None:
        if patient_id in seen[bucket]:
            return
        seen[bucket].add(patient_id)
        getattr(result, bucket).append(patient_id)

    for assessment in assessments:
        if assessment.high_risk:
            _append("high_risk", assessment.patient_id)
        if assessment.fever:
            _append("fever", assessment.patient_id)
        if assessment.data_quality_issue:
            _append("data_quality_issues", assessment.patient_id)

    return result


def classify_patients(records: Iterable[PatientRecord]) -> ClassificationResult:
    return build_classification(assess_patients(records))

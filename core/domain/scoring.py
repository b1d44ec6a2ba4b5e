"""
Rule-based risk scoring.

Each vital category is an ordered tuple of guarded rules. Rules are evaluated
top to bottom and the first match wins, so a reading that satisfies several
bands always gets the score of the highest-priority one. A value matching no
rule scores 0.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from core.domain.models import NormalizedVitals, RiskScoreBreakdown

InputT = TypeVar("InputT")


@dataclass(frozen=True)
class ScoreRule(Generic[InputT]):
    """A named guard paired with the score it yields."""

    name: str
    score: int
    applies: Callable[[InputT], bool]


def evaluate_rules(rules: Sequence[ScoreRule[InputT]], value: InputT, default: int = 0) -> int:
    """Return the score of the first matching rule, or `default`."""
    for rule in rules:
        if rule.applies(value):
            return rule.score
    return default


# Blood pressure: (systolic, diastolic), either side may be None
BloodPressure = tuple[int | None, int | None]


def _stage_2(bp: BloodPressure) -> bool:
    systolic, diastolic = bp
    return (systolic is not None and systolic >= 140) or (diastolic is not None and diastolic >= 90)


def _stage_1(bp: BloodPressure) -> bool:
    systolic, diastolic = bp
    return (systolic is not None and 130 <= systolic <= 139) or (
        diastolic is not None and 80 <= diastolic <= 89
    )


def _elevated(bp: BloodPressure) -> bool:
    systolic, diastolic = bp
    return (
        systolic is not None
        and 120 <= systolic <= 129
        and (diastolic is None or diastolic < 80)
    )


def _normal(bp: BloodPressure) -> bool:
    systolic, diastolic = bp
    return systolic is not None and diastolic is not None and systolic < 120 and diastolic < 80


BLOOD_PRESSURE_RULES: tuple[ScoreRule[BloodPressure], ...] = (
    ScoreRule("stage_2", 4, _stage_2),
    ScoreRule("stage_1", 3, _stage_1),
    ScoreRule("elevated", 2, _elevated),
    ScoreRule("normal", 1, _normal),
)

TEMPERATURE_RULES: tuple[ScoreRule[float], ...] = (
    ScoreRule("normal", 0, lambda t: t <= 99.5),
    ScoreRule("low_fever", 1, lambda t: 99.6 <= t <= 100.9),
    ScoreRule("high_fever", 2, lambda t: t >= 101.0),
)

# Both lower bands score 1; any parsed age up to 65 contributes 1.
AGE_RULES: tuple[ScoreRule[int], ...] = (
    ScoreRule("under_40", 1, lambda a: a < 40),
    ScoreRule("40_to_65", 1, lambda a: a <= 65),
    ScoreRule("over_65", 2, lambda a: a > 65),
)


def blood_pressure_score(systolic: int | None, diastolic: int | None) -> int:
    if systolic is None and diastolic is None:
        return 0
    return evaluate_rules(BLOOD_PRESSURE_RULES, (systolic, diastolic))


def temperature_score(temperature: float | None) -> int:
    if temperature is None:
        return 0
    return evaluate_rules(TEMPERATURE_RULES, temperature)


def age_score(age: int | None) -> int:
    if age is None:
        return 0
    return evaluate_rules(AGE_RULES, age)


def score_vitals(vitals: NormalizedVitals) -> RiskScoreBreakdown:
    """Compute all sub-scores for one patient's normalized vitals."""
    return RiskScoreBreakdown(
        bp=blood_pressure_score(vitals.systolic, vitals.diastolic),
        temperature=temperature_score(vitals.temperature),
        age=age_score(vitals.age),
    )

"""
Field parsing for raw patient vitals.

Every parser here is total: malformed input becomes `None`, nothing raises.
Numbers are read from the leading numeric part of a string, so `"98.6F"` is
98.6 and `"120 "` is 120, while `"abc"` or `""` is absent.
"""

import math
import re
from typing import Any

from core.domain.models import NormalizedVitals, PatientRecord

BP_SEPARATOR = "/"

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def is_missing(raw: Any) -> bool:
    """Shallow presence check: null or empty string only."""
    return raw is None or raw == ""


def _parse_int(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    if isinstance(raw, str):
        match = _INT_PREFIX.match(raw)
        return int(match.group(1)) if match else None
    return None


def _parse_float(raw: Any) -> float | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int | float):
        value = float(raw)
    elif isinstance(raw, str):
        match = _FLOAT_PREFIX.match(raw)
        if not match:
            return None
        value = float(match.group(1))
    else:
        return None
    return value if math.isfinite(value) else None


def parse_blood_pressure(raw: Any) -> tuple[int | None, int | None]:
    """
    Split a `"SYS/DIA"` reading into optional integers.

    Each side parses independently, so `"140/"` gives `(140, None)` and
    `"/90"` gives `(None, 90)`. Non-string input yields `(None, None)`.
    """
    if not isinstance(raw, str) or not raw:
        return None, None

    parts = raw.split(BP_SEPARATOR)
    systolic_raw = parts[0]
    diastolic_raw = parts[1] if len(parts) > 1 else ""

    systolic = _parse_int(systolic_raw) if systolic_raw else None
    diastolic = _parse_int(diastolic_raw) if diastolic_raw else None
    return systolic, diastolic


def parse_temperature(raw: Any) -> float | None:
    return _parse_float(raw)


def parse_age(raw: Any) -> int | None:
    return _parse_int(raw)


def normalize_vitals(record: PatientRecord) -> NormalizedVitals:
    """Build the typed vitals view for one record."""
    systolic, diastolic = parse_blood_pressure(record.blood_pressure)
    return NormalizedVitals(
        systolic=systolic,
        diastolic=diastolic,
        temperature=parse_temperature(record.temperature),
        age=parse_age(record.age),
    )

"""
Domain models for patient risk assessment.

These models represent the core business concepts and are framework-agnostic.
Raw patient fields are kept exactly as the remote API sent them; normalization
happens in `core.domain.vitals`, never here.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

from core.domain.errors import PageAbandoned


class PatientRecord(BaseModel):
    """Single patient record as returned by the assessment API."""

    model_config = ConfigDict(
        frozen=True,  # Immutable once fetched
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    patient_id: str = Field(min_length=1)

    # Raw vitals: may be missing, null, empty, partial or non-numeric
    blood_pressure: Any = None
    temperature: Any = None
    age: Any = None


class NormalizedVitals(BaseModel):
    """Typed view of a record's vitals. `None` means absent, never zero."""

    model_config = ConfigDict(frozen=True)

    systolic: int | None = None
    diastolic: int | None = None
    temperature: float | None = None
    age: int | None = None


class RiskScoreBreakdown(BaseModel):
    """Per-category sub-scores and their sum."""

    model_config = ConfigDict(frozen=True)

    bp: int = Field(ge=0, le=4)
    temperature: int = Field(ge=0, le=2)
    age: int = Field(ge=0, le=2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return self.bp + self.temperature + self.age


class PatientAssessment(BaseModel):
    """Scoring and classification outcome for one patient."""

    model_config = ConfigDict(frozen=True)

    patient_id: str
    vitals: NormalizedVitals
    scores: RiskScoreBreakdown
    high_risk: bool
    fever: bool
    data_quality_issue: bool


class ClassificationResult(BaseModel):
    """
    Three ordered identifier sequences.

    Membership is not mutually exclusive. Order follows input traversal and
    an identifier appears at most once per sequence.
    """

    high_risk: list[str] = Field(default_factory=list)
    fever: list[str] = Field(default_factory=list)
    data_quality_issues: list[str] = Field(default_factory=list)

    def to_payload(self) -> dict[str, list[str]]:
        """Render the document accepted by the submission endpoint."""
        return {
            "high_risk_patients": list(self.high_risk),
            "fever_patients": list(self.fever),
            "data_quality_issues": list(self.data_quality_issues),
        }


class FetchState(str, Enum):
    """States of a single page request."""

    REQUESTING = "requesting"
    RATE_LIMITED = "rate_limited"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    ABANDONED = "abandoned"


class FetchEvent(str, Enum):
    """Inputs that move a page request between states."""

    RATE_LIMIT_HIT = "rate_limit_hit"
    COOLDOWN_ELAPSED = "cooldown_elapsed"
    ATTEMPT_FAILED = "attempt_failed"
    BACKOFF_ELAPSED = "backoff_elapsed"
    RETRIES_EXHAUSTED = "retries_exhausted"
    PAGE_RECEIVED = "page_received"
    NEXT_PAGE = "next_page"


@dataclass
class FetchSession:
    """Mutable state carried across the pagination loop."""

    page: int = 1
    records: list[PatientRecord] = field(default_factory=list)
    has_next: bool = True
    retry_count: int = 0
    state: FetchState = FetchState.REQUESTING

    # Bookkeeping for reporting
    pages_fetched: int = 0
    total_retries: int = 0
    rate_limit_waits: int = 0
    abandonment: PageAbandoned | None = None

    def start_next_page(self) -> None:
        self.page += 1
        self.retry_count = 0


class FetchOutcome(BaseModel):
    """Summary of a finished fetch session."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    records: list[PatientRecord]
    pages_fetched: int = Field(ge=0)
    total_retries: int = Field(ge=0)
    rate_limit_waits: int = Field(ge=0)
    abandonment: PageAbandoned | None = Field(default=None, exclude=True)
    finished_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def abandoned_page(self) -> int | None:
        return self.abandonment.page if self.abandonment is not None else None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completed(self) -> bool:
        """True when every page was fetched (no abandonment)."""
        return self.abandonment is None


class AssessmentReport(BaseModel):
    """Everything one pipeline run produced."""

    fetch: FetchOutcome
    classification: ClassificationResult
    assessments: list[PatientAssessment]
    acknowledgement: dict[str, Any] | None = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

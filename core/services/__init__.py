"""
Core services for the application.

This package contains the paginated fetch engine and the end-to-end
assessment pipeline built on top of it.
"""

from .assessment_pipeline import AssessmentPipeline, AssessmentSink
from .patient_fetcher import (
    PageResponse,
    PaginatedFetchEngine,
    PatientPage,
    PatientPageTransport,
    Result,
)

__all__ = [
    "AssessmentPipeline",
    "AssessmentSink",
    "PageResponse",
    "PaginatedFetchEngine",
    "PatientPage",
    "PatientPageTransport",
    "Result",
]

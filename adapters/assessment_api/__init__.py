"""Adapter for the remote patient assessment API."""

from .client import AssessmentAPIClient

__all__ = ["AssessmentAPIClient"]

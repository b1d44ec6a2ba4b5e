"""
End-to-end assessment pipeline.

1. Fetch every page of patient records (degrading to a partial dataset)
2. Score and classify each patient
3. Submit the three result sets once

Only the submission step may fail the run; everything before it degrades.
"""

import asyncio
from typing import Any, Protocol

import structlog

from core.config import AppConfig, get_config
from core.domain.classification import assess_patients, build_classification
from core.domain.models import AssessmentReport, ClassificationResult
from core.services.patient_fetcher import PaginatedFetchEngine, PatientPageTransport, SleepFunc

logger = structlog.get_logger(__name__)


class AssessmentSink(Protocol):
    """Accepts the classification payload and returns an acknowledgement."""

    async def submit(self, payload: dict[str, Any]) -> dict[str, Any]: ...


class AssessmentPipeline:
    """
    Orchestrates fetch → classify → submit.

    Collaborators are injected for tests; when omitted, an `AssessmentAPIClient`
    is built from configuration and closed at the end of the run.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        transport: PatientPageTransport | None = None,
        sink: AssessmentSink | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.config = config or get_config()
        self.transport = transport
        self.sink = sink
        self._sleep = sleep
        self.logger = logger.bind(component="assessment_pipeline")

    def _log_classification(self, result: ClassificationResult, total: int) -> None:
        self.logger.info(
            "patients_classified",
            total_patients=total,
            high_risk=len(result.high_risk),
            fever=len(result.fever),
            data_quality_issues=len(result.data_quality_issues),
        )

    async def run(self) -> AssessmentReport:
        """Execute one complete assessment run."""
        if self.transport is not None and (self.sink is not None or not self.config.submit_results):
            return await self._run_with(self.transport, self.sink)

        # Imported lazily so the core stays importable without the HTTP adapter
        from adapters.assessment_api import AssessmentAPIClient

        async with AssessmentAPIClient(self.config.api) as client:
            return await self._run_with(self.transport or client, self.sink or client)

    async def _run_with(
        self, transport: PatientPageTransport, sink: AssessmentSink | None
    ) -> AssessmentReport:
        self.logger.info("assessment_run_starting", submit_results=self.config.submit_results)

        engine = PaginatedFetchEngine(
            transport,
            policy=self.config.fetch,
            page_size=self.config.api.page_size,
            sleep=self._sleep,
        )
        outcome = await engine.fetch_all()

        if not outcome.completed:
            self.logger.warning(
                "classifying_partial_dataset",
                abandoned_page=outcome.abandoned_page,
                records=len(outcome.records),
            )

        assessments = assess_patients(outcome.records)
        classification = build_classification(assessments)
        self._log_classification(classification, len(assessments))

        acknowledgement = None
        if self.config.submit_results and sink is not None:
            # Single attempt; failures propagate to the caller
            acknowledgement = await sink.submit(classification.to_payload())
        else:
            self.logger.info("submission_skipped")

        return AssessmentReport(
            fetch=outcome,
            classification=classification,
            assessments=assessments,
            acknowledgement=acknowledgement,
        )

"""
Run a complete patient risk assessment against the remote API.

Steps:
1. Configuration loading and validation
2. Paginated fetch of all patients (retries, rate limits, partial data)
3. Risk scoring and classification
4. Submission of the result sets

Run with: uv run python run_assessment.py
"""

import asyncio
import json
import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from core.config import configure_logging, get_config, validate_config
from core.domain.errors import SubmissionError
from core.domain.models import AssessmentReport
from core.services.assessment_pipeline import AssessmentPipeline

console = Console()


def render_report(report: AssessmentReport) -> None:
    """Print fetch statistics, flagged patients and the submission result."""

    fetch_table = Table(title="Fetch Summary")
    fetch_table.add_column("Metric", style="cyan")
    fetch_table.add_column("Value", style="white")
    fetch_table.add_row("Patients Fetched", str(len(report.fetch.records)))
    fetch_table.add_row("Pages Fetched", str(report.fetch.pages_fetched))
    fetch_table.add_row("Retries", str(report.fetch.total_retries))
    fetch_table.add_row("Rate Limit Waits", str(report.fetch.rate_limit_waits))
    fetch_table.add_row(
        "Status",
        "complete" if report.fetch.completed else f"abandoned at page {report.fetch.abandoned_page}",
    )
    console.print(fetch_table)

    patients_table = Table(title="Patient Assessments")
    patients_table.add_column("Patient", style="cyan")
    patients_table.add_column("BP", justify="right")
    patients_table.add_column("Temp", justify="right")
    patients_table.add_column("Age", justify="right")
    patients_table.add_column("Total", justify="right", style="bold")
    patients_table.add_column("Flags", style="yellow")

    for assessment in report.assessments:
        flags = [
            name
            for name, flagged in (
                ("high-risk", assessment.high_risk),
                ("fever", assessment.fever),
                ("data-quality", assessment.data_quality_issue),
            )
            if flagged
        ]
        patients_table.add_row(
            assessment.patient_id,
            str(assessment.scores.bp),
            str(assessment.scores.temperature),
            str(assessment.scores.age),
            str(assessment.scores.total),
            ", ".join(flags),
        )
    console.print(patients_table)

    console.print(Panel("📋 Generated Results", style="bold"))
    console.print_json(json.dumps(report.classification.to_payload()))

    if report.acknowledgement is not None:
        console.print(Panel("📨 Submission Response", style="bold green"))
        console.print_json(json.dumps(report.acknowledgement))
    else:
        console.print("Submission skipped (SUBMIT_RESULTS is off)", style="yellow")


async def main() -> int:
    validate_config()
    config = get_config()
    configure_logging(config.logging)

    console.print(Panel("🩺 Patient Risk Assessment", style="bold blue"))

    pipeline = AssessmentPipeline(config)
    try:
        report = await pipeline.run()
    except SubmissionError as e:
        console.print(f"❌ {e}", style="red")
        return 1

    render_report(report)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        console.print("\n👋 Assessment stopped by user", style="yellow")
        sys.exit(130)

"""
Error taxonomy for the assessment pipeline.

Only `SubmissionError` is ever raised to the caller. The fetch errors are
produced and consumed inside the fetch engine, except that a `PageAbandoned`
is returned on the fetch outcome. Malformed fields never raise at all (see
`core.domain.vitals`).
"""


class AssessmentError(Exception):
    """Base class for all pipeline errors."""


class RateLimited(AssessmentError):
    """The API answered 429. Retried after a cooldown, without penalty."""

    def __init__(self, page: int) -> None:
        super().__init__(f"Rate limited on page {page}")
        self.page = page


class TransientFetchFailure(AssessmentError):
    """Network error, non-2xx status or unusable body for one page attempt."""

    def __init__(self, page: int, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"Fetching page {page} failed: {reason}")
        self.page = page
        self.reason = reason
        self.status_code = status_code


class PageAbandoned(AssessmentError):
    """Retry bound exhausted for a page; the session stops early."""

    def __init__(self, page: int, attempts: int, last_error: str = "") -> None:
        message = f"Gave up on page {page} after {attempts} attempts"
        super().__init__(f"{message}: {last_error}" if last_error else message)
        self.page = page
        self.attempts = attempts
        self.last_error = last_error


class SubmissionError(AssessmentError):
    """The submission endpoint could not be reached or rejected the payload."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"Submission failed: {reason}")
        self.reason = reason
        self.status_code = status_code

"""
Resilient paginated fetch of patient records.

Key patterns:
- Protocol-based dependency injection for the transport
- Generic Result type for expected per-attempt failures
- Explicit state enum plus transition table for retry/backoff/abandon policy
- Graceful degradation: a session never raises, it returns what it fetched
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

import structlog
from pydantic import ValidationError

from core.config import FetchPolicyConfig
from core.domain.errors import (
    AssessmentError,
    PageAbandoned,
    RateLimited,
    TransientFetchFailure,
)
from core.domain.models import FetchEvent, FetchOutcome, FetchSession, FetchState, PatientRecord

logger = structlog.get_logger(__name__)

# Generic Result type for explicit error handling
ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)

SleepFunc = Callable[[float], Awaitable[None]]


class Result(Generic[ValueT, ErrorT]):
    """Outcome of one page attempt: a decoded page or the error that classifies the failure."""

    def __init__(self, value: ValueT | None = None, error: ErrorT | None = None) -> None:
        if value is not None and error is not None:
            raise ValueError("Result cannot have both value and error")
        if value is None and error is None:
            raise ValueError("Result must have either value or error")
        self._value: ValueT | None = value
        self._error: ErrorT | None = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def unwrap(self) -> ValueT:
        if self._error:
            raise self._error
        return self._value  # type: ignore

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error


@dataclass(frozen=True)
class PageResponse:
    """Raw answer to one page request. `body` is decoded JSON for 2xx answers."""

    status_code: int
    body: Any = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class PatientPage:
    """A successfully decoded page."""

    records: list[PatientRecord]
    has_next: bool


class PatientPageTransport(Protocol):
    """
    Protocol for requesting one page of patient records.

    Implementations may raise on network errors; the engine converts any
    exception into a retryable failure.
    """

    async def request_page(self, page: int, limit: int) -> PageResponse: ...


# (state, event) -> next state. Anything not listed is a programming error.
TRANSITIONS: dict[tuple[FetchState, FetchEvent], FetchState] = {
    (FetchState.REQUESTING, FetchEvent.RATE_LIMIT_HIT): FetchState.RATE_LIMITED,
    (FetchState.REQUESTING, FetchEvent.ATTEMPT_FAILED): FetchState.RETRYING,
    (FetchState.REQUESTING, FetchEvent.PAGE_RECEIVED): FetchState.SUCCEEDED,
    (FetchState.RATE_LIMITED, FetchEvent.COOLDOWN_ELAPSED): FetchState.REQUESTING,
    (FetchState.RETRYING, FetchEvent.BACKOFF_ELAPSED): FetchState.REQUESTING,
    (FetchState.RETRYING, FetchEvent.RETRIES_EXHAUSTED): FetchState.ABANDONED,
    (FetchState.SUCCEEDED, FetchEvent.NEXT_PAGE): FetchState.REQUESTING,
}


def next_state(state: FetchState, event: FetchEvent) -> FetchState:
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise RuntimeError(f"Invalid fetch transition: {state.value} on {event.value}") from None


def parse_page(page: int, body: Any) -> PatientPage:
    """
    Decode a success body into records and the continuation flag.

    A body that is not a JSON object is a transient failure. A missing or
    non-list `data` contributes no records; a missing `hasNext` ends the session.
    Individual records that fail validation are skipped.
    """
    if not isinstance(body, dict):
        raise TransientFetchFailure(page, f"unexpected body type {type(body).__name__}")

    records: list[PatientRecord] = []
    data = body.get("data")
    if isinstance(data, list):
        for index, item in enumerate(data):
            try:
                records.append(PatientRecord.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "patient_record_skipped", page=page, index=index, error=str(e)
                )

    pagination = body.get("pagination")
    has_next = bool(pagination.get("hasNext")) if isinstance(pagination, dict) else False
    return PatientPage(records=records, has_next=has_next)


class PaginatedFetchEngine:
    """
    Drives sequential page requests until the API reports no further pages.

    Design principles:
    - Sequential: page N's continuation flag decides whether N+1 is requested
    - Rate limits wait a fixed cooldown and never consume a retry
    - Other failures back off linearly and are bounded per page
    - Abandonment stops the session but keeps every record already fetched
    """

    def __init__(
        self,
        transport: PatientPageTransport,
        policy: FetchPolicyConfig | None = None,
        page_size: int = 5,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.transport = transport
        self.policy = policy or FetchPolicyConfig()
        self.page_size = page_size
        self._sleep = sleep
        self.logger = logger.bind(component="paginated_fetch_engine")

    async def attempt_page(self, page: int) -> Result[PatientPage, AssessmentError]:
        """Issue one request for `page` and classify the answer."""
        try:
            response = await self.transport.request_page(page, self.page_size)
        except Exception as e:
            return Result.err(TransientFetchFailure(page, f"{type(e).__name__}: {e}"))

        if response.status_code == 429:
            return Result.err(RateLimited(page))

        if not response.is_success:
            return Result.err(
                TransientFetchFailure(
                    page, f"HTTP {response.status_code}", status_code=response.status_code
                )
            )

        try:
            return Result.ok(parse_page(page, response.body))
        except TransientFetchFailure as e:
            return Result.err(e)

    def _transition(self, session: FetchSession, event: FetchEvent) -> None:
        session.state = next_state(session.state, event)

    async def _fetch_current_page(self, session: FetchSession) -> None:
        """Run the state machine for `session.page` until SUCCEEDED or ABANDONED."""
        log = self.logger.bind(page=session.page)

        while session.state not in (FetchState.SUCCEEDED, FetchState.ABANDONED):
            result = await self.attempt_page(session.page)

            if result.is_ok():
                page = result.unwrap()
                self._transition(session, FetchEvent.PAGE_RECEIVED)
                session.records.extend(page.records)
                session.has_next = page.has_next
                session.pages_fetched += 1
                log.info(
                    "page_fetched",
                    records=len(page.records),
                    total_records=len(session.records),
                    has_next=page.has_next,
                )
                continue

            error = result.unwrap_err()

            if isinstance(error, RateLimited):
                self._transition(session, FetchEvent.RATE_LIMIT_HIT)
                session.rate_limit_waits += 1
                log.warning(
                    "rate_limited", cooldown_seconds=self.policy.rate_limit_cooldown_seconds
                )
                await self._sleep(self.policy.rate_limit_cooldown_seconds)
                self._transition(session, FetchEvent.COOLDOWN_ELAPSED)
                continue

            self._transition(session, FetchEvent.ATTEMPT_FAILED)
            session.retry_count += 1
            session.total_retries += 1

            if session.retry_count >= self.policy.max_retries:
                self._transition(session, FetchEvent.RETRIES_EXHAUSTED)
                session.abandonment = PageAbandoned(session.page, session.retry_count, str(error))
                session.has_next = False
                log.error("page_abandoned", attempts=session.retry_count, last_error=str(error))
                continue

            delay = self.policy.backoff_base_seconds * session.retry_count
            log.warning(
                "page_retry_scheduled",
                attempt=session.retry_count,
                max_retries=self.policy.max_retries,
                delay_seconds=delay,
                error=str(error),
            )
            await self._sleep(delay)
            self._transition(session, FetchEvent.BACKOFF_ELAPSED)

    async def fetch_all(self) -> FetchOutcome:
        """
        Fetch every page, tolerating partial failure.

        Never raises for transport problems: an abandoned page ends the session
        and the outcome carries whatever was accumulated before it.
        """
        session = FetchSession()
        self.logger.info("fetch_session_started", page_size=self.page_size)

        while True:
            await self._fetch_current_page(session)
            if session.state is FetchState.ABANDONED or not session.has_next:
                break
            self._transition(session, FetchEvent.NEXT_PAGE)
            session.start_next_page()

        outcome = FetchOutcome(
            records=session.records,
            pages_fetched=session.pages_fetched,
            total_retries=session.total_retries,
            rate_limit_waits=session.rate_limit_waits,
            abandonment=session.abandonment,
        )

        self.logger.info(
            "fetch_session_completed",
            total_records=len(outcome.records),
            pages_fetched=outcome.pages_fetched,
            total_retries=outcome.total_retries,
            rate_limit_waits=outcome.rate_limit_waits,
            abandoned_page=outcome.abandoned_page,
        )
        return outcome

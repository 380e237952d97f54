"""
Per-point settlement resolution with bounded retry.

One attempt is: normalize -> build query -> fetch -> parse -> select. Only a
rate-limited response is retried, after a linear backoff
(`base_delay_seconds * attempt_number`). Every other outcome, success or failure,
is final for the point.

The resolver owns the run's `RunState` reference and records each winner as used
before returning, so later points see it as taken.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

from settlescout.config.settings import Settings
from settlescout.core.diagnostics import DiagnosticsLog
from settlescout.domain.models import (
    Coordinate,
    FailureReason,
    ResolutionFailure,
    ResolutionOutcome,
    RunState,
)
from settlescout.geo.boundary import Boundary
from settlescout.ingestion.overpass_parser import parse_settlements
from settlescout.ingestion.overpass_query import build_settlement_query
from settlescout.selection.selector import select_settlement

logger = logging.getLogger(__name__)


class QueryClient(Protocol):
    def fetch(self, query: str) -> str: ...


class SettlementResolver:
    """Resolves one point at a time against a shared `RunState`."""

    def __init__(
        self,
        settings: Settings,
        client: QueryClient,
        state: RunState,
        *,
        boundary: Boundary | None = None,
        sleep: Callable[[float], None] = time.sleep,
        diagnostics: DiagnosticsLog | None = None,
    ):
        self._settings = settings
        self._client = client
        self._state = state
        self._boundary = boundary
        self._sleep = sleep
        self._diagnostics = diagnostics

    @property
    def state(self) -> RunState:
        return self._state

    def _attempt(self, point: Coordinate) -> ResolutionOutcome:
        overpass = self._settings.overpass
        selection = self._settings.selection
        try:
            origin = Coordinate.normalized(point.lon, point.lat)
            query = build_settlement_query(
                origin,
                radius_m=overpass.radius_m,
                timeout_seconds=overpass.query_timeout_seconds,
                place_kinds=overpass.place_kinds,
            )
            body = self._client.fetch(query)
            candidates = parse_settlements(body, origin=origin, boundary=self._boundary)
            winner = select_settlement(
                candidates,
                self._state,
                selection.policy,
                population_band=selection.population_band.as_tuple(),
            )
        except ResolutionFailure as failure:
            if failure.reason is FailureReason.PARSE_ERROR and failure.raw_body is not None:
                logger.warning("Unparsable response for point (%s, %s): %s", point.lon, point.lat, failure.detail)
                if self._diagnostics:
                    self._diagnostics.record_parse_error(failure.raw_body, failure.detail)
            return ResolutionOutcome.from_failure(failure)
        except Exception as exc:
            logger.exception("Unhandled error resolving point (%s, %s)", point.lon, point.lat)
            if self._diagnostics:
                self._diagnostics.record_exception(exc, context=f"point lon={point.lon} lat={point.lat}")
            return ResolutionOutcome.failed(FailureReason.UNHANDLED_EXCEPTION, str(exc) or type(exc).__name__)
        return ResolutionOutcome.resolved(winner)

    def resolve_once(self, point: Coordinate) -> ResolutionOutcome:
        """Run a single attempt without retry and without recording the winner."""
        return self._attempt(point)

    def resolve(self, point: Coordinate) -> ResolutionOutcome:
        """Resolve `point`, retrying rate-limited attempts, and record the winner as used."""
        retry = self._settings.retry
        max_attempts = int(retry.max_attempts)
        base_delay_seconds = float(retry.base_delay_seconds)

        for attempt in range(1, max_attempts + 1):
            outcome = self._attempt(point)
            if outcome.failure is not FailureReason.RATE_LIMITED:
                if outcome.settlement is not None:
                    self._state.mark_used(outcome.settlement.name)
                    return ResolutionOutcome.resolved(outcome.settlement, attempts=attempt)
                return ResolutionOutcome.failed(
                    outcome.failure,
                    outcome.detail,
                    status_code=outcome.status_code,
                    attempts=attempt,
                )

            if attempt >= max_attempts:
                break

            delay = base_delay_seconds * attempt
            logger.warning(
                "Overpass rate-limited; retrying in %.2fs (attempt %s/%s)",
                delay,
                attempt,
                max_attempts,
            )
            self._sleep(delay)

        return ResolutionOutcome.failed(FailureReason.RETRIES_EXHAUSTED, attempts=max_attempts)

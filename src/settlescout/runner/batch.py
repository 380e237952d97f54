"""
Sequential batch runner.

Points are resolved strictly one at a time in input order: the run-wide used-name
set must be observed in a single total order, otherwise two points could be
awarded the same settlement. A fixed pause follows every point to stay within the
query service's rate limits; it is independent of the resolver's retry backoff.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Callable

from settlescout.domain.models import Coordinate, PointResult
from settlescout.resolver.resolver import SettlementResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchSummary:
    processed: int
    resolved: int
    failed: int


def summarize(results: Sequence[PointResult]) -> BatchSummary:
    resolved = sum(1 for r in results if r.outcome.ok)
    return BatchSummary(processed=len(results), resolved=resolved, failed=len(results) - resolved)


def _progress_line(index: int, total: int, result: PointResult, not_available_marker: str = "N/A") -> str:
    settlement = result.outcome.settlement
    if settlement is None:
        return f"[{index}/{total}] failed: {result.outcome.status_text}"
    population = f"{settlement.population:,}" if settlement.population is not None else not_available_marker
    return f"[{index}/{total}] {settlement.name} {settlement.distance_km:.2f} km | population: {population}"


class BatchRunner:
    def __init__(
        self,
        resolver: SettlementResolver,
        *,
        pause_seconds: float = 1.0,
        not_available_marker: str = "N/A",
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._resolver = resolver
        self._pause_seconds = float(pause_seconds)
        self._not_available_marker = not_available_marker
        self._sleep = sleep

    def run(self, points: Iterable[Coordinate]) -> list[PointResult]:
        """Resolve every point in order; one `PointResult` per input point."""
        points = list(points)
        total = len(points)
        results: list[PointResult] = []

        for index, point in enumerate(points, start=1):
            outcome = self._resolver.resolve(point)
            result = PointResult(point=point, outcome=outcome)
            results.append(result)
            logger.info("%s", _progress_line(index, total, result, self._not_available_marker))

            if self._pause_seconds > 0:
                self._sleep(self._pause_seconds)

        summary = summarize(results)
        logger.info("Batch finished: processed=%s resolved=%s failed=%s", summary.processed, summary.resolved, summary.failed)
        return results

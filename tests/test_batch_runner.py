import logging

from settlescout.domain.models import (
    Coordinate,
    FailureReason,
    PointResult,
    ResolutionOutcome,
    RunState,
    SettlementCandidate,
)
from settlescout.resolver.resolver import SettlementResolver
from settlescout.runner.batch import BatchRunner, summarize

from overpass_payloads import body, node


class ScriptedClient:
    """Returns one scripted response per call, recording queries in order."""

    def __init__(self, responses):
        self._responses = list(responses)
        self.queries: list[str] = []

    def fetch(self, query: str) -> str:
        self.queries.append(query)
        return self._responses.pop(0)


def test_runner_keeps_input_order_and_pauses_after_every_point(settings):
    points = [Coordinate(lon=37.62, lat=55.75), Coordinate(lon=0.0, lat=float("nan")), Coordinate(lon=30.3, lat=59.9)]
    client = ScriptedClient(
        [
            body(node("Moscow", 55.75, 37.62, place="city", population="13000000")),
            body(node("Saint Petersburg", 59.94, 30.31, place="city", population="5600000")),
        ]
    )
    pauses: list[float] = []
    resolver = SettlementResolver(settings, client, RunState.create(), sleep=lambda _s: None)

    results = BatchRunner(resolver, pause_seconds=1.5, sleep=pauses.append).run(points)

    assert [r.point for r in results] == points
    assert results[0].outcome.settlement.name == "Moscow"
    assert results[1].outcome.failure is FailureReason.INVALID_COORDINATE
    assert results[2].outcome.settlement.name == "Saint Petersburg"
    assert pauses == [1.5, 1.5, 1.5]
    assert len(client.queries) == 2


def test_runner_never_awards_the_same_settlement_twice(settings):
    same = body(node("Tula", 54.19, 37.61, place="city", population="470000"), node("Aleksin", 54.5, 37.07, population="57000"))
    client = ScriptedClient([same, same, same])
    resolver = SettlementResolver(settings, client, RunState.create(), sleep=lambda _s: None)

    results = BatchRunner(resolver, pause_seconds=0).run([Coordinate(lon=37.6, lat=54.2)] * 3)

    assert [r.outcome.status_text for r in results] == [
        "OK",
        "OK",
        "No suitable settlement (all excluded or already used)",
    ]
    assert [r.outcome.settlement.name for r in results[:2]] == ["Tula", "Aleksin"]


def test_summarize_counts():
    ok = ResolutionOutcome.resolved(SettlementCandidate(name="A", coordinate=Coordinate(0, 0), distance_km=1))
    bad = ResolutionOutcome.failed(FailureReason.NO_ELEMENTS)
    summary = summarize([PointResult(Coordinate(0, 0), ok), PointResult(Coordinate(1, 1), bad)])
    assert (summary.processed, summary.resolved, summary.failed) == (2, 1, 1)


def test_progress_line_uses_configured_not_available_marker(settings, caplog):
    client = ScriptedClient([body(node("Nameless Pop", 55.8, 37.6))])
    resolver = SettlementResolver(settings, client, RunState.create(), sleep=lambda _s: None)
    runner = BatchRunner(resolver, pause_seconds=0, not_available_marker="n/d")

    with caplog.at_level(logging.INFO, logger="settlescout.runner.batch"):
        runner.run([Coordinate(lon=37.62, lat=55.75)])

    assert any("population: n/d" in m for m in caplog.messages)

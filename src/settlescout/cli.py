"""
SettleScout CLI entrypoint.

`run` executes the configured batch: read the input workbook, resolve every point,
write the results workbook. All paths and knobs come from settings; see
`settlescout.config.settings`.

`resolve` looks up a single point with an empty run state (handy for debugging a
row that failed in a batch).
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Any

from settlescout.config.settings import Settings, get_settings
from settlescout.core.diagnostics import DiagnosticsLog
from settlescout.core.env import resolve_project_path
from settlescout.core.logging import configure_logging
from settlescout.domain.models import Coordinate, RunState
from settlescout.geo.boundary import Boundary, BoundaryUnavailableError, load_boundary
from settlescout.ingestion.overpass_client import OverpassClient
from settlescout.io.workbook import WorkbookReadError, read_excluded_names, read_points, write_results
from settlescout.resolver.resolver import SettlementResolver
from settlescout.runner.batch import BatchRunner, summarize

logger = logging.getLogger(__name__)


def _load_optional_boundary(settings: Settings) -> Boundary | None:
    source = settings.run.boundary_source
    if not source:
        return None
    return load_boundary(
        source,
        timeout_seconds=settings.app.http_timeout_seconds,
        user_agent=settings.app.user_agent,
    )


def build_resolver(settings: Settings, state: RunState, *, boundary: Boundary | None = None) -> SettlementResolver:
    return SettlementResolver(
        settings,
        OverpassClient(settings),
        state,
        boundary=boundary,
        diagnostics=DiagnosticsLog.from_settings(settings),
    )


def _cmd_run(_: argparse.Namespace) -> int:
    """Handle the `run` subcommand."""
    settings = get_settings()
    input_path = resolve_project_path(settings.run.input_path)

    try:
        boundary = _load_optional_boundary(settings)
        points = read_points(input_path)
        excluded = read_excluded_names(input_path)
    except (BoundaryUnavailableError, WorkbookReadError) as exc:
        logger.error("%s", exc)
        return 1

    logger.info("Loaded %s points from %s", len(points), input_path)
    logger.info("Loaded %s excluded settlement names", len(excluded))

    state = RunState.create(excluded)
    runner = BatchRunner(
        build_resolver(settings, state, boundary=boundary),
        pause_seconds=settings.run.pause_seconds,
        not_available_marker=settings.run.not_available_marker,
    )
    results = runner.run(points)

    out_path = write_results(
        results,
        resolve_project_path(settings.run.output_dir),
        not_available_marker=settings.run.not_available_marker,
    )
    summary = summarize(results)
    logger.info("Done. Processed: %s, errors: %s. Output: %s", summary.processed, summary.failed, out_path)
    return 0


def _cmd_resolve(args: argparse.Namespace) -> int:
    settings = get_settings()
    try:
        boundary = _load_optional_boundary(settings)
    except BoundaryUnavailableError as exc:
        logger.error("%s", exc)
        return 1

    resolver = build_resolver(settings, RunState.create(), boundary=boundary)
    outcome = resolver.resolve(Coordinate(lon=float(args.lon), lat=float(args.lat)))

    payload: dict[str, Any] = {"status": outcome.status_text, "attempts": outcome.attempts}
    if outcome.settlement is not None:
        s = outcome.settlement
        payload.update(
            {
                "name": s.name,
                "kind": s.kind,
                "lon": s.coordinate.lon,
                "lat": s.coordinate.lat,
                "distance_km": round(s.distance_km, 2),
                "population": s.population,
            }
        )
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0 if outcome.ok else 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the SettleScout CLI."""
    parser = argparse.ArgumentParser(prog="settlescout")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Resolve every point of the configured input workbook.")
    run.set_defaults(func=_cmd_run)

    one = sub.add_parser("resolve", help="Resolve a single point (empty exclusion list).")
    one.add_argument("--lon", required=True, type=float)
    one.add_argument("--lat", required=True, type=float)
    one.set_defaults(func=_cmd_resolve)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m settlescout.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())

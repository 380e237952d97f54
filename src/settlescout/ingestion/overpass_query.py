"""
Overpass QL query construction.

One query per input point: named places of the configured kinds within a radius,
asked for as nodes, ways and relations at once. `out center;` makes the service
attach a centroid to ways/relations, which the parser falls back to.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence

from settlescout.domain.models import Coordinate, FailureReason, ResolutionFailure

DEFAULT_RADIUS_M = 100_000
DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_PLACE_KINDS = ("city", "town", "village")

_PLACE_KIND_RE = re.compile(r"^[a-z_]+$")


def _fmt(value: float) -> str:
    # repr() is locale-independent and round-trips exactly.
    return repr(float(value))


def validate_coordinate(coordinate: Coordinate) -> None:
    """Raise `INVALID_COORDINATE` if a (normalized) coordinate cannot be queried."""
    if not math.isfinite(coordinate.lat) or abs(coordinate.lat) > 90:
        raise ResolutionFailure(FailureReason.INVALID_COORDINATE, f"lat={coordinate.lat!r}")
    if not math.isfinite(coordinate.lon):
        raise ResolutionFailure(FailureReason.INVALID_COORDINATE, f"lon={coordinate.lon!r}")


def build_settlement_query(
    coordinate: Coordinate,
    *,
    radius_m: int = DEFAULT_RADIUS_M,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    place_kinds: Sequence[str] = DEFAULT_PLACE_KINDS,
) -> str:
    """Build the Overpass QL text for settlements around a normalized coordinate."""
    validate_coordinate(coordinate)

    kinds = [k.strip().lower() for k in place_kinds if k and k.strip()]
    if not kinds or not all(_PLACE_KIND_RE.match(k) for k in kinds):
        raise ValueError(f"Invalid place kinds: {list(place_kinds)!r}")

    place_filter = f"[place~'^({'|'.join(kinds)})$']"
    around = f"(around:{int(radius_m)},{_fmt(coordinate.lat)},{_fmt(coordinate.lon)})"
    statements = "\n".join(
        f"  {element}{place_filter}{around};" for element in ("node", "way", "relation")
    )
    return f"[out:json][timeout:{int(timeout_seconds)}];\n(\n{statements}\n);\nout center;\n"

"""
Overpass response parsing.

Turns a raw `[out:json]` payload into `SettlementCandidate`s. Malformed elements
are skipped one by one; only whole-response problems are raised as failures.
No deduplication happens here: the same settlement can come back as a node and
as a way/relation, and name-level dedup is the selector's job.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from settlescout.core.geo import haversine_km
from settlescout.domain.models import (
    Coordinate,
    FailureReason,
    ResolutionFailure,
    SettlementCandidate,
)
from settlescout.geo.boundary import Boundary

logger = logging.getLogger(__name__)

_POPULATION_RE = re.compile(r"^\s*\d+\s*$")


def parse_population(value: Any) -> int | None:
    """Parse an OSM `population` tag; anything but a plain non-negative integer is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str) and _POPULATION_RE.match(value):
        return int(value)
    return None


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    return out if math.isfinite(out) else None


def element_coordinate(element: dict[str, Any]) -> Coordinate | None:
    """Point geometry first (nodes), then the `center` added by `out center` (ways/relations)."""
    lat = _as_float(element.get("lat"))
    lon = _as_float(element.get("lon"))
    if lat is not None and lon is not None:
        return Coordinate(lon=lon, lat=lat)

    center = element.get("center")
    if isinstance(center, dict):
        lat = _as_float(center.get("lat"))
        lon = _as_float(center.get("lon"))
        if lat is not None and lon is not None:
            return Coordinate(lon=lon, lat=lat)
    return None


def _load_payload(body: str) -> dict[str, Any]:
    if body.lstrip().startswith("<"):
        raise ResolutionFailure(FailureReason.UNEXPECTED_SERVER_FORMAT)
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise ResolutionFailure(FailureReason.PARSE_ERROR, str(exc), raw_body=body) from exc
    if not isinstance(payload, dict):
        raise ResolutionFailure(
            FailureReason.PARSE_ERROR, "response root is not an object", raw_body=body
        )
    return payload


def parse_settlements(
    body: str,
    *,
    origin: Coordinate,
    boundary: Boundary | None = None,
) -> list[SettlementCandidate]:
    """Parse a raw Overpass response into candidates around `origin`.

    Raises:
        ResolutionFailure: UNEXPECTED_SERVER_FORMAT, PARSE_ERROR, NO_ELEMENTS or
            NO_SETTLEMENTS_RECOGNIZED.
    """
    payload = _load_payload(body)

    elements = payload.get("elements")
    if not isinstance(elements, list) or not elements:
        raise ResolutionFailure(FailureReason.NO_ELEMENTS)

    candidates: list[SettlementCandidate] = []
    outside = 0
    for element in elements:
        if not isinstance(element, dict):
            continue
        coordinate = element_coordinate(element)
        if coordinate is None:
            continue
        if boundary is not None and not boundary.contains(coordinate):
            outside += 1
            continue

        tags = element.get("tags")
        if not isinstance(tags, dict):
            continue
        name = str(tags.get("name") or "").strip()
        if not name:
            continue
        kind = str(tags.get("place") or "").strip() or "unknown"

        candidates.append(
            SettlementCandidate(
                name=name,
                kind=kind,
                coordinate=coordinate,
                distance_km=haversine_km(origin.lat, origin.lon, coordinate.lat, coordinate.lon),
                population=parse_population(tags.get("population")),
            )
        )

    if outside:
        logger.debug("Dropped %s elements outside the boundary", outside)
    if not candidates:
        raise ResolutionFailure(FailureReason.NO_SETTLEMENTS_RECOGNIZED)
    return candidates

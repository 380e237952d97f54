"""Builders for fake Overpass `[out:json]` payloads used across tests."""

from __future__ import annotations

import json
import math
from typing import Any

from settlescout.domain.models import Coordinate

KM_PER_DEGREE_LAT = 6371.0 * math.pi / 180.0

ORIGIN = Coordinate(lon=37.62, lat=55.75)


def north_of(origin: Coordinate, km: float) -> tuple[float, float]:
    """(lat, lon) of a point `km` kilometers due north of `origin`."""
    return origin.lat + km / KM_PER_DEGREE_LAT, origin.lon


def node(name: str | None, lat: float, lon: float, *, place: str | None = "town", population: Any = None) -> dict[str, Any]:
    tags: dict[str, Any] = {}
    if name is not None:
        tags["name"] = name
    if place is not None:
        tags["place"] = place
    if population is not None:
        tags["population"] = population
    return {"type": "node", "id": abs(hash((name, lat, lon))), "lat": lat, "lon": lon, "tags": tags}


def way(name: str, lat: float, lon: float, *, place: str = "town", population: Any = None) -> dict[str, Any]:
    el = node(name, lat, lon, place=place, population=population)
    el.pop("lat")
    el.pop("lon")
    el["type"] = "way"
    el["center"] = {"lat": lat, "lon": lon}
    return el


def body(*elements: dict[str, Any]) -> str:
    return json.dumps({"version": 0.6, "generator": "Overpass API", "elements": list(elements)})

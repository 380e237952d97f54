"""
National boundary polygon.

The boundary is fetched once per run from a GeoJSON file or URL and then used as
a containment filter by the response parser, so that a search radius spilling
across a border only yields domestic settlements.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx
from shapely.errors import ShapelyError
from shapely.geometry import Point, shape
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union
from shapely.prepared import prep

from settlescout.core.env import resolve_project_path
from settlescout.core.http import get_json
from settlescout.domain.models import Coordinate

logger = logging.getLogger(__name__)

_POLYGON_TYPES = {"Polygon", "MultiPolygon"}


class BoundaryUnavailableError(RuntimeError):
    """The boundary polygon could not be loaded; containment filtering is impossible."""


class Boundary:
    """A (multi)polygon with a containment test on `Coordinate`s."""

    def __init__(self, geometry: BaseGeometry):
        if geometry.is_empty or geometry.geom_type not in _POLYGON_TYPES:
            raise ValueError(f"Boundary must be a non-empty polygon, got {geometry.geom_type}")
        self._geometry = geometry
        self._prepared = prep(geometry)

    @property
    def geometry(self) -> BaseGeometry:
        return self._geometry

    def contains(self, coordinate: Coordinate) -> bool:
        """True when the coordinate is inside the polygon or on its border."""
        return bool(self._prepared.covers(Point(coordinate.lon, coordinate.lat)))


def _geometries(payload: Any) -> list[BaseGeometry]:
    if not isinstance(payload, dict):
        raise ValueError("GeoJSON root must be an object")
    kind = payload.get("type")
    if kind == "FeatureCollection":
        out: list[BaseGeometry] = []
        for feature in payload.get("features") or []:
            out.extend(_geometries(feature))
        return out
    if kind == "Feature":
        geometry = payload.get("geometry")
        return _geometries(geometry) if geometry else []
    if kind in _POLYGON_TYPES:
        return [shape(payload)]
    if kind == "GeometryCollection":
        return [g for g in shape(payload).geoms if g.geom_type in _POLYGON_TYPES]
    return []


def boundary_from_geojson(payload: Any) -> Boundary:
    """Build a `Boundary` from a GeoJSON mapping (FeatureCollection/Feature/geometry)."""
    polygons = _geometries(payload)
    if not polygons:
        raise ValueError("GeoJSON contains no polygon geometry")
    merged = polygons[0] if len(polygons) == 1 else unary_union(polygons)
    return Boundary(merged)


def load_boundary(source: str | Path, *, timeout_seconds: float = 60, user_agent: str | None = None) -> Boundary:
    """Load the boundary from a local GeoJSON path or an http(s) URL.

    Raises:
        BoundaryUnavailableError: On any fetch, decode or geometry error.
    """
    text = str(source)
    try:
        if text.startswith(("http://", "https://")):
            payload = get_json(text, timeout_seconds=timeout_seconds, user_agent=user_agent)
        else:
            path = resolve_project_path(text)
            payload = json.loads(path.read_text(encoding="utf-8"))
        boundary = boundary_from_geojson(payload)
    except (httpx.HTTPError, OSError, ValueError, KeyError, TypeError, ShapelyError) as exc:
        raise BoundaryUnavailableError(f"Boundary polygon unavailable from {text}: {exc}") from exc

    logger.info("Loaded boundary polygon from %s (%s)", text, boundary.geometry.geom_type)
    return boundary

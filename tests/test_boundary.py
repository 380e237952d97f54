import json

import httpx
import pytest

from settlescout.domain.models import Coordinate
from settlescout.geo.boundary import BoundaryUnavailableError, boundary_from_geojson, load_boundary

SQUARE = {"type": "Polygon", "coordinates": [[[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]]}
ISLAND = {"type": "Polygon", "coordinates": [[[20, 20], [21, 20], [21, 21], [20, 21], [20, 20]]]}


def test_feature_collection_geometries_are_unioned():
    payload = {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {}, "geometry": SQUARE},
            {"type": "Feature", "properties": {}, "geometry": ISLAND},
        ],
    }
    boundary = boundary_from_geojson(payload)

    assert boundary.contains(Coordinate(lon=5, lat=5))
    assert boundary.contains(Coordinate(lon=20.5, lat=20.5))
    assert not boundary.contains(Coordinate(lon=15, lat=15))


def test_points_on_the_border_are_kept():
    boundary = boundary_from_geojson(SQUARE)
    assert boundary.contains(Coordinate(lon=10, lat=5))


def test_load_boundary_from_file(tmp_path):
    path = tmp_path / "border.geojson"
    path.write_text(json.dumps({"type": "Feature", "geometry": SQUARE}), encoding="utf-8")

    assert load_boundary(path).contains(Coordinate(lon=1, lat=1))


def test_load_boundary_from_url(monkeypatch):
    monkeypatch.setattr("settlescout.geo.boundary.get_json", lambda *_a, **_k: SQUARE)
    assert load_boundary("https://example.test/border.geojson").contains(Coordinate(lon=1, lat=1))


@pytest.mark.parametrize(
    "content",
    ["not json", json.dumps({"type": "Point", "coordinates": [1, 2]}), json.dumps({"type": "FeatureCollection", "features": []})],
)
def test_load_boundary_failures_are_fatal(tmp_path, content):
    path = tmp_path / "border.geojson"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(BoundaryUnavailableError):
        load_boundary(path)


def test_missing_file_and_http_errors_are_fatal(monkeypatch, tmp_path):
    with pytest.raises(BoundaryUnavailableError):
        load_boundary(tmp_path / "missing.geojson")

    def boom(*_a, **_k):
        raise httpx.ConnectError("down")

    monkeypatch.setattr("settlescout.geo.boundary.get_json", boom)
    with pytest.raises(BoundaryUnavailableError):
        load_boundary("https://example.test/border.geojson")

import math

import pytest

from settlescout.core.geo import haversine_km, normalize_latitude, normalize_longitude
from settlescout.domain.models import Coordinate


@pytest.mark.parametrize(
    "lon",
    [-1080.5, -540.0, -360.0, -180.0, -179.9, -0.0, 0.0, 37.62, 179.999, 180.0, 180.5, 359.0, 360.0, 725.25],
)
def test_normalize_longitude_in_range_and_congruent(lon):
    out = normalize_longitude(lon)

    assert -180.0 < out <= 180.0
    # Congruent modulo 360 (up to float error).
    k = (lon - out) / 360.0
    assert abs(k - round(k)) < 1e-9


def test_normalize_longitude_wraps_instead_of_clamping():
    assert normalize_longitude(190.0) == pytest.approx(-170.0)
    assert normalize_longitude(-190.0) == pytest.approx(170.0)
    assert normalize_longitude(-180.0) == 180.0


@pytest.mark.parametrize("lat,expected", [(-120.0, -90.0), (-90.0, -90.0), (45.5, 45.5), (90.0, 90.0), (1e9, 90.0)])
def test_normalize_latitude_clamps(lat, expected):
    assert normalize_latitude(lat) == expected


def test_normalize_latitude_keeps_nan():
    assert math.isnan(normalize_latitude(float("nan")))


def test_haversine_identity_and_symmetry():
    a = (55.75, 37.62)
    b = (59.94, 30.31)

    assert haversine_km(*a, *a) == 0.0
    assert haversine_km(*a, *b) == haversine_km(*b, *a)


def test_haversine_known_distance_moscow_saint_petersburg():
    # Roughly 634 km between the two city centres.
    assert haversine_km(55.75, 37.62, 59.94, 30.31) == pytest.approx(634, abs=5)


def test_coordinate_normalized_applies_both_rules():
    c = Coordinate.normalized(370.0, 95.0)
    assert c.lon == pytest.approx(10.0)
    assert c.lat == 90.0


@pytest.mark.parametrize("lat", [float("inf"), float("-inf")])
def test_normalize_latitude_keeps_infinities_so_they_can_be_rejected(lat):
    assert normalize_latitude(lat) == lat

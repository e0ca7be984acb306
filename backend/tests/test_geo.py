from math import atan2, cos, radians, sin, sqrt
import json

import pytest

from app.services.geo.distance import haversine_m, point_geojson


def _reference(lat1, lon1, lat2, lon2):
    R = 6371000
    p1, p2 = radians(lat1), radians(lat2)
    dp, dl = radians(lat2 - lat1), radians(lon2 - lon1)
    a = sin(dp / 2) ** 2 + cos(p1) * cos(p2) * sin(dl / 2) ** 2
    return R * 2 * atan2(sqrt(a), sqrt(1 - a))


@pytest.mark.parametrize("a, b", [
    ((28.6139, 77.2090), (28.6129, 77.2295)),
    ((28.6139, 77.2090), (28.6140, 77.2091)),
    ((28.70, 77.10), (28.7001, 77.1001)),
    ((-33.8688, 151.2093), (51.5074, -0.1278)),
])
def test_haversine_matches_reference(a, b):
    got = haversine_m(a[1], a[0], b[1], b[0])
    assert got == pytest.approx(_reference(a[0], a[1], b[0], b[1]), rel=1e-9)


def test_delhi_points_about_two_km_apart():
    d = haversine_m(77.2090, 28.6139, 77.2295, 28.6129)
    assert 2000 <= d < 2010


def test_nearby_points_about_fifteen_meters():
    d = haversine_m(77.2090, 28.6139, 77.2091, 28.6140)
    assert 10 < d < 20


def test_same_point_is_zero():
    assert haversine_m(77.1, 28.7, 77.1, 28.7) == 0.0


def test_point_geojson_is_lon_lat():
    assert json.loads(point_geojson(77.1, 28.7)) == {"type": "Point", "coordinates": [77.1, 28.7]}

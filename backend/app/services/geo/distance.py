# backend/app/services/geo/distance.py
from __future__ import annotations
from math import radians, sin, cos, asin, sqrt
import json

EARTH_RADIUS_M = 6371000.0


def haversine_m(lon1, lat1, lon2, lat2) -> float:
    """2点間の大円距離（メートル）。引数は (lon, lat) 順、EPSG:4326。"""
    dlon, dlat = radians(lon2 - lon1), radians(lat2 - lat1)
    a = sin(dlat/2)**2 + cos(radians(lat1))*cos(radians(lat2))*sin(dlon/2)**2
    return 2 * EARTH_RADIUS_M * asin(min(1.0, sqrt(a)))


def point_geojson(lon: float, lat: float) -> str:
    return json.dumps({"type": "Point", "coordinates": [lon, lat]})

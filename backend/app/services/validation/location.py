# backend/app/services/validation/location.py
from __future__ import annotations
from typing import Optional

from app.schemas.validation import DeviceGps, ExifMetadata, LocationCheck
from app.services.geo.distance import haversine_m
from .scoring import round_half_up

MATCH_RADIUS_M = 500
SUSPICIOUS_RADIUS_M = 2000


def validate_location(
    exif: Optional[ExifMetadata],
    device_gps: Optional[DeviceGps],
    zone: Optional[str],
) -> LocationCheck:
    exif_gps = exif.gps if exif and exif.gps and exif.gps.has_position else None

    # 1) EXIF GPS と端末GPS の突き合わせ
    if exif_gps is not None and device_gps is not None:
        distance = haversine_m(
            exif_gps.longitude, exif_gps.latitude,
            device_gps.longitude, device_gps.latitude,
        )
        meters = int(round_half_up(distance))
        if distance < MATCH_RADIUS_M:
            return LocationCheck(
                passed=True,
                exif_gps_match=True,
                distance_from_ward=meters,
                source="exif+device",
                message="GPS coordinates verified - EXIF matches user location",
            )
        if distance < SUSPICIOUS_RADIUS_M:
            return LocationCheck(
                passed=True,
                needs_review=True,
                distance_from_ward=meters,
                source="exif+device",
                message=f"EXIF GPS differs from user location by {meters}m",
            )
        return LocationCheck(
            passed=False,
            distance_from_ward=meters,
            source="exif+device",
            message=f"EXIF GPS far from user location ({meters}m) - suspicious",
        )

    # 2) 端末GPSのみ
    if device_gps is not None:
        return LocationCheck(
            passed=True,
            source="device",
            message="GPS captured but no EXIF GPS - acceptable",
        )

    # 3) 区域の申告のみ
    if zone and zone.strip():
        return LocationCheck(
            passed=True,
            needs_review=True,
            source="zone",
            message="Zone selected but GPS recommended for better accuracy",
        )

    return LocationCheck(passed=False, source="none", message="No location data provided")

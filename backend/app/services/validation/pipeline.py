# backend/app/services/validation/pipeline.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from app.schemas.validation import DeviceGps, ExifMetadata, ImageCapture, ValidationReport
from .authenticity import AuthenticityStrategy
from .location import validate_location
from .quality import validate_quality
from .scoring import overall_score
from .timestamp import validate_timestamp


def validate_submission(
    capture: ImageCapture,
    exif: Optional[ExifMetadata],
    device_gps: Optional[DeviceGps],
    zone: Optional[str],
    authenticity: AuthenticityStrategy,
    now: Optional[datetime] = None,
) -> ValidationReport:
    """4つの検証を独立に実行し、合格率を overall_score として集計する。"""
    now = now or datetime.now(timezone.utc)

    timestamp = validate_timestamp(exif, now)
    auth = authenticity(capture)
    location = validate_location(exif, device_gps, zone)
    quality = validate_quality(capture.byte_size, capture.mime_type, exif)

    score = overall_score([
        timestamp.passed,
        auth.passed if auth is not None else None,
        location.passed,
        quality.passed,
    ])
    return ValidationReport(
        timestamp=timestamp,
        location=location,
        quality=quality,
        authenticity=auth,
        overall_score=score,
    )

# backend/app/services/validation/timestamp.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from app.schemas.validation import ExifMetadata, TimestampCheck
from .scoring import round_half_up

FRESH_HOURS = 24
STALE_HOURS = 48


def _as_utc(value: datetime) -> datetime:
    # naive は UTC とみなす
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_timestamp(exif: Optional[ExifMetadata], now: datetime) -> TimestampCheck:
    now = _as_utc(now)
    photo_time = exif.best_timestamp if exif else None
    if photo_time is None:
        return TimestampCheck(
            passed=False,
            message="No timestamp found in photo metadata",
            upload_date_time=now,
        )

    photo_time = _as_utc(photo_time)
    hours = (now - photo_time).total_seconds() / 3600
    check = dict(
        exif_date_time=photo_time,
        upload_date_time=now,
        hours_difference=round_half_up(hours, 1),
    )

    # 判定は丸め前の値で行う
    if hours < 0:
        return TimestampCheck(
            passed=False,
            message="Photo timestamp is in the future - possible clock issue",
            **check,
        )
    if hours <= FRESH_HOURS:
        return TimestampCheck(
            passed=True,
            message="Timestamp verified - photo taken within 24 hours",
            **check,
        )
    if hours <= STALE_HOURS:
        return TimestampCheck(
            passed=True,
            needs_review=True,
            message="Photo is 1-2 days old - acceptable but verify",
            **check,
        )
    days = int(round_half_up(hours / 24))
    return TimestampCheck(
        passed=False,
        message=f"Photo is {days} days old - too old",
        **check,
    )

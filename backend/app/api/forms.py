# backend/app/api/forms.py
from __future__ import annotations
from datetime import datetime
from math import isfinite
from typing import Optional

from fastapi import HTTPException, UploadFile
from pydantic import ValidationError

from app.schemas.validation import DeviceGps, ImageCapture


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        number = float(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"invalid number: {value!r}")
    # "nan" / "inf" は float() を通ってしまう
    if not isfinite(number):
        raise HTTPException(status_code=400, detail=f"invalid number: {value!r}")
    return number


def device_gps_from_form(
    latitude: Optional[str], longitude: Optional[str], accuracy: Optional[str],
) -> Optional[DeviceGps]:
    lat, lon = _parse_float(latitude), _parse_float(longitude)
    # 位置情報の許可が無ければ両方とも空
    if lat is None or lon is None:
        return None
    try:
        return DeviceGps(latitude=lat, longitude=lon, accuracy=_parse_float(accuracy))
    except ValidationError:
        raise HTTPException(
            status_code=400,
            detail="GPS coordinates out of range (latitude -90..90, longitude -180..180, accuracy >= 0)",
        )


def parse_capture_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise HTTPException(status_code=400, detail="clientCaptureTime must be ISO-8601")


def read_capture(
    image: UploadFile, max_size: int, client_capture_time: Optional[datetime] = None,
) -> ImageCapture:
    data = image.file.read()
    if len(data) > max_size:
        raise HTTPException(status_code=413, detail=f"File exceeds {max_size} bytes")
    return ImageCapture.from_bytes(
        data,
        mime_type=image.content_type or "application/octet-stream",
        client_capture_time=client_capture_time,
        original_name=image.filename,
    )

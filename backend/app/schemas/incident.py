# backend/app/schemas/incident.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict

from .commons import CamelModel, IncidentStatus, IncidentType
from .validation import DeviceGps


class IncidentSubmission(BaseModel):
    type: IncidentType
    ward: str
    description: str = ""
    device_gps: Optional[DeviceGps] = None
    client_capture_time: Optional[datetime] = None


class IncidentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    ward: str
    description: Optional[str] = ""
    gps_latitude: Optional[float] = None
    gps_longitude: Optional[float] = None
    gps_accuracy: Optional[float] = None
    location_point: Optional[str] = None
    ward_verified: bool = False
    image_filename: str
    image_original_name: Optional[str] = None
    image_url: Optional[str] = None
    image_thumbnail_url: Optional[str] = None
    image_size: Optional[int] = None
    image_mime_type: Optional[str] = None
    image_hash: Optional[str] = None
    exif_date_time: Optional[datetime] = None
    exif_date_time_original: Optional[datetime] = None
    exif_gps_latitude: Optional[float] = None
    exif_gps_longitude: Optional[float] = None
    exif_gps_altitude: Optional[float] = None
    exif_camera_make: Optional[str] = None
    exif_camera_model: Optional[str] = None
    exif_camera_software: Optional[str] = None
    exif_image_width: Optional[int] = None
    exif_image_height: Optional[int] = None
    validation_timestamp: Optional[dict[str, Any]] = None
    validation_location: Optional[dict[str, Any]] = None
    validation_quality: Optional[dict[str, Any]] = None
    validation_authenticity: Optional[dict[str, Any]] = None
    validation_overall_score: Optional[int] = None
    status: str
    client_captured_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None


class StatusUpdate(CamelModel):
    status: IncidentStatus
    reviewed_by: Optional[str] = None


# backend/app/schemas/validation.py
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from .commons import CamelModel


class ImageCapture(BaseModel):
    """提出された写真そのもの。撮影後は不変。"""
    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str
    byte_size: int
    client_capture_time: Optional[datetime] = None
    original_name: Optional[str] = None

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str, **kwargs) -> "ImageCapture":
        return cls(data=data, mime_type=mime_type, byte_size=len(data), **kwargs)


class ExifGps(CamelModel):
    model_config = ConfigDict(frozen=True)

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class CameraInfo(CamelModel):
    model_config = ConfigDict(frozen=True)

    make: Optional[str] = None
    model: Optional[str] = None
    software: Optional[str] = None


class ImageSize(CamelModel):
    model_config = ConfigDict(frozen=True)

    width: int
    height: int

    @property
    def pixels(self) -> int:
        return self.width * self.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


class ExifMetadata(CamelModel):
    model_config = ConfigDict(frozen=True)

    date_time: Optional[datetime] = None
    date_time_original: Optional[datetime] = None
    gps: Optional[ExifGps] = None
    camera: CameraInfo = CameraInfo()
    image_size: Optional[ImageSize] = None

    @property
    def best_timestamp(self) -> Optional[datetime]:
        return self.date_time_original or self.date_time


class DeviceGps(CamelModel):
    latitude: float = Field(ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(ge=-180, le=180, allow_inf_nan=False)
    accuracy: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)  # meters


# --- 検証結果（JSON カラムとして永続化される契約） ---

class ValidationCheck(CamelModel):
    passed: bool
    message: str


class TimestampCheck(ValidationCheck):
    exif_date_time: Optional[datetime] = None
    upload_date_time: datetime
    hours_difference: Optional[float] = None
    needs_review: bool = False


class LocationCheck(ValidationCheck):
    exif_gps_match: bool = False
    distance_from_ward: Optional[int] = None
    needs_review: bool = False
    source: str = "none"  # exif+device | device | zone | none


class QualityCheck(ValidationCheck):
    resolution: str = ""
    file_size: int
    format: str


class AuthenticityCheck(ValidationCheck):
    confidence: int = 0
    simulated: bool = False
    ai_probability: Optional[float] = None


class ValidationReport(CamelModel):
    timestamp: TimestampCheck
    location: LocationCheck
    quality: QualityCheck
    authenticity: Optional[AuthenticityCheck] = None
    overall_score: int

    def checks(self) -> list[Optional[ValidationCheck]]:
        return [self.timestamp, self.authenticity, self.location, self.quality]

    @property
    def degraded(self) -> bool:
        return any(c is None for c in self.checks())

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

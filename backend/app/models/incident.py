# backend/app/models/incident.py
from datetime import datetime, timezone
from sqlalchemy import (
    Integer, BigInteger, String, Text, Float, Boolean, DateTime, JSON, Column, event,
)
from .base import Base
from app.services.geo.distance import point_geojson


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Incident(Base):
    __tablename__ = "incidents"
    id = Column(Integer, primary_key=True)

    type = Column(String(50), nullable=False)  # waterlogging|pothole|drainage
    ward = Column(String(255), nullable=False)
    description = Column(Text, default="")

    # 端末GPS
    gps_latitude = Column(Float, nullable=True)
    gps_longitude = Column(Float, nullable=True)
    gps_accuracy = Column(Float, nullable=True)
    location_point = Column(Text, nullable=True)  # GeoJSON string (Point, EPSG:4326)
    ward_verified = Column(Boolean, default=False)

    # 画像
    image_filename = Column(String(255), nullable=False)
    image_original_name = Column(String(255), nullable=True)
    image_path = Column(Text, nullable=True)
    image_thumbnail_path = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    image_thumbnail_url = Column(Text, nullable=True)
    image_size = Column(BigInteger, nullable=True)
    image_mime_type = Column(String(50), nullable=True)
    image_hash = Column(String(64), unique=True, index=True)

    # EXIF
    exif_date_time = Column(DateTime(timezone=True), nullable=True)
    exif_date_time_original = Column(DateTime(timezone=True), nullable=True)
    exif_gps_latitude = Column(Float, nullable=True)
    exif_gps_longitude = Column(Float, nullable=True)
    exif_gps_altitude = Column(Float, nullable=True)
    exif_camera_make = Column(String(100), nullable=True)
    exif_camera_model = Column(String(100), nullable=True)
    exif_camera_software = Column(String(100), nullable=True)
    exif_image_width = Column(Integer, nullable=True)
    exif_image_height = Column(Integer, nullable=True)

    # 検証結果（提出時に一度だけ書き込む）
    validation_timestamp = Column(JSON, nullable=True)
    validation_location = Column(JSON, nullable=True)
    validation_quality = Column(JSON, nullable=True)
    validation_authenticity = Column(JSON, nullable=True)
    validation_overall_score = Column(Integer, nullable=True, index=True)

    status = Column(String(20), nullable=False, default="pending", index=True)  # pending|verified|rejected|duplicate

    client_captured_at = Column(DateTime(timezone=True), nullable=True)
    submitted_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # 学習データ用
    labels = Column(JSON, default=list)
    used_for_training = Column(Boolean, default=False)


@event.listens_for(Incident, "before_insert")
@event.listens_for(Incident, "before_update")
def _set_location_point(mapper, connection, target: Incident) -> None:
    # 端末GPSがあれば代表点を GeoJSON で保持
    if target.gps_latitude is not None and target.gps_longitude is not None:
        target.location_point = point_geojson(target.gps_longitude, target.gps_latitude)
    else:
        target.location_point = None

# backend/app/services/incidents/service.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional
import hashlib
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.incident import Incident
from app.schemas.incident import IncidentSubmission
from app.schemas.validation import ExifMetadata, ImageCapture, ValidationReport
from app.services.exif.reader import extract_exif
from app.services.images.processing import process_image
from app.services.storage.local import LocalObjectStore
from app.services.validation.authenticity import AuthenticityStrategy
from app.services.validation.pipeline import validate_submission
from .errors import DuplicateIncidentError, IncidentNotFoundError

logger = logging.getLogger(__name__)


def file_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def is_duplicate(db: Session, image_hash: str) -> bool:
    return db.query(Incident.id).filter(Incident.image_hash == image_hash).first() is not None


def _exif_columns(exif: Optional[ExifMetadata]) -> dict:
    if exif is None:
        return {}
    gps = exif.gps
    size = exif.image_size
    return dict(
        exif_date_time=exif.date_time,
        exif_date_time_original=exif.date_time_original,
        exif_gps_latitude=gps.latitude if gps else None,
        exif_gps_longitude=gps.longitude if gps else None,
        exif_gps_altitude=gps.altitude if gps else None,
        exif_camera_make=exif.camera.make,
        exif_camera_model=exif.camera.model,
        exif_camera_software=exif.camera.software,
        exif_image_width=size.width if size else None,
        exif_image_height=size.height if size else None,
    )


def _validation_columns(report: ValidationReport) -> dict:
    doc = report.to_json_dict()
    return dict(
        validation_timestamp=doc["timestamp"],
        validation_location=doc["location"],
        validation_quality=doc["quality"],
        validation_authenticity=doc.get("authenticity"),
        validation_overall_score=report.overall_score,
    )


def submit_incident(
    db: Session,
    store: LocalObjectStore,
    authenticity: AuthenticityStrategy,
    capture: ImageCapture,
    submission: IncidentSubmission,
    now: Optional[datetime] = None,
) -> tuple[Incident, ValidationReport]:
    """
    写真付きの通報を検証して保存する。
    1) 重複チェック（SHA-256）
    2) EXIF 抽出と検証（レポートは一度だけ作る）
    3) 再エンコード画像とサムネイルを保存
    4) incidents に1行 INSERT
    """
    now = now or datetime.now(timezone.utc)
    image_hash = file_hash(capture.data)
    if is_duplicate(db, image_hash):
        logger.warning("duplicate image detected (%s)", image_hash[:8])
        raise DuplicateIncidentError(image_hash)

    exif = extract_exif(capture.data)
    report = validate_submission(
        capture, exif, submission.device_gps, submission.ward, authenticity, now=now,
    )

    # InvalidImageError はここで送出（何も保存していない段階）
    full, thumb = process_image(capture.data)
    filename = f"incident-{int(now.timestamp() * 1000)}-{image_hash[:8]}.jpg"
    stored = store.put(filename, full)
    try:
        thumb_stored = store.put(f"thumbnails/thumb-{filename}", thumb)
    except Exception:
        # 本画像だけ残さない
        store.delete(stored.path)
        raise

    gps = submission.device_gps
    obj = Incident(
        type=submission.type,
        ward=submission.ward,
        description=submission.description or "",
        gps_latitude=gps.latitude if gps else None,
        gps_longitude=gps.longitude if gps else None,
        gps_accuracy=gps.accuracy if gps else None,
        ward_verified=False,
        image_filename=filename,
        image_original_name=capture.original_name or "camera-capture.jpg",
        image_path=stored.path,
        image_thumbnail_path=thumb_stored.path,
        image_url=stored.url,
        image_thumbnail_url=thumb_stored.url,
        image_size=capture.byte_size,
        image_mime_type=capture.mime_type,
        image_hash=image_hash,
        status="pending",
        client_captured_at=submission.client_capture_time,
        submitted_at=now,
        **_exif_columns(exif),
        **_validation_columns(report),
    )
    db.add(obj)
    try:
        db.commit()
    except IntegrityError:
        # 同時提出で unique 制約に当たった場合
        db.rollback()
        store.delete(stored.path)
        store.delete(thumb_stored.path)
        raise DuplicateIncidentError(image_hash)
    db.refresh(obj)

    logger.info("incident saved id=%s score=%s%%", obj.id, report.overall_score)
    return obj, report


def update_status(db: Session, incident_id: int, status: str, reviewed_by: Optional[str] = None) -> Incident:
    obj = db.get(Incident, incident_id)
    if not obj:
        raise IncidentNotFoundError(incident_id)
    obj.status = status
    obj.reviewed_at = datetime.now(timezone.utc)
    if reviewed_by:
        obj.reviewed_by = reviewed_by
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info("incident %s marked %s", incident_id, status)
    return obj

from typing import Literal, Optional
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.api.deps import get_authenticity, get_store
from app.api.forms import device_gps_from_form, parse_capture_time, read_capture
from app.config import Settings, get_settings
from app.db import get_db
from app.schemas.commons import INCIDENT_TYPES
from app.schemas.incident import IncidentOut, IncidentSubmission, StatusUpdate
from app.services.images.processing import InvalidImageError
from app.services.incidents import queries
from app.services.incidents.errors import DuplicateIncidentError, IncidentNotFoundError
from app.services.incidents.service import submit_incident, update_status
from app.services.storage.local import LocalObjectStore
from app.services.validation.authenticity import AuthenticityStrategy
from app.services.validation.quality import ALLOWED_MIME_TYPES

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def create_incident(
    image: Optional[UploadFile] = File(None),
    ward: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    description: str = Form(""),
    gps_latitude: Optional[str] = Form(None, alias="gpsLatitude"),
    gps_longitude: Optional[str] = Form(None, alias="gpsLongitude"),
    gps_accuracy: Optional[str] = Form(None, alias="gpsAccuracy"),
    client_capture_time: Optional[str] = Form(None, alias="clientCaptureTime"),
    db: Session = Depends(get_db),
    store: LocalObjectStore = Depends(get_store),
    authenticity: AuthenticityStrategy = Depends(get_authenticity),
    settings: Settings = Depends(get_settings),
):
    logger.info("new incident submission received")
    if image is None:
        raise HTTPException(status_code=400, detail="No image file provided. Please capture a photo using the camera.")
    if not ward or not type:
        raise HTTPException(status_code=400, detail="Missing required fields: ward and type are required")
    if type not in INCIDENT_TYPES:
        raise HTTPException(status_code=400, detail=f"Invalid incident type. Must be one of: {', '.join(INCIDENT_TYPES)}")
    if image.content_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(status_code=400, detail="Invalid file type. Only JPEG and PNG allowed.")

    captured_at = parse_capture_time(client_capture_time)
    capture = read_capture(image, settings.max_file_size, captured_at)
    try:
        submission = IncidentSubmission(
            type=type,
            ward=ward,
            description=description,
            device_gps=device_gps_from_form(gps_latitude, gps_longitude, gps_accuracy),
            client_capture_time=captured_at,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        obj, report = submit_incident(db, store, authenticity, capture, submission)
    except DuplicateIncidentError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidImageError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "message": "Incident reported successfully",
        "incident": {
            "id": obj.id,
            "type": obj.type,
            "ward": obj.ward,
            "validationScore": report.overall_score,
            "validation": report.to_json_dict(),
            "imageUrl": obj.image_url,
            "thumbnailUrl": obj.image_thumbnail_url,
            "status": obj.status,
            "submittedAt": obj.submitted_at.isoformat() if obj.submitted_at else None,
        },
    }


@router.get("")
@router.get("/", include_in_schema=False)
def list_incidents(
    status: Optional[str] = None,
    type: Optional[str] = None,
    ward: Optional[str] = None,
    min_score: Optional[int] = Query(None, alias="minScore"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    rows, pagination = queries.list_incidents(
        db, status=status, type=type, ward=ward, min_score=min_score, page=page, limit=limit,
    )
    return {
        "success": True,
        "data": [IncidentOut.model_validate(r) for r in rows],
        "pagination": pagination,
    }


# /{incident_id} より先に定義する
@router.get("/stats/summary")
def stats_summary(db: Session = Depends(get_db)):
    return {"success": True, "data": queries.incident_stats(db)}


@router.get("/training/export")
def export_training(
    min_score: Optional[int] = Query(None, alias="minScore", ge=0, le=100),
    format: Literal["json", "csv"] = "json",
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    threshold = settings.training_min_score if min_score is None else min_score
    rows = queries.training_data(db, threshold)
    if format == "csv":
        headers = {"Content-Disposition": 'attachment; filename="training_data.csv"'}
        return Response(content=queries.training_csv(rows), media_type="text/csv", headers=headers)
    return {
        "success": True,
        "count": len(rows),
        "data": [IncidentOut.model_validate(r) for r in rows],
    }


@router.get("/features")
def list_features(status: Optional[str] = None, db: Session = Depends(get_db)):
    return queries.incident_features(db, status=status)


@router.get("/{incident_id}")
def get_incident(incident_id: int, db: Session = Depends(get_db)):
    try:
        obj = queries.get_incident(db, incident_id)
    except IncidentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "data": IncidentOut.model_validate(obj)}


@router.patch("/{incident_id}")
def patch_incident(incident_id: int, payload: StatusUpdate, db: Session = Depends(get_db)):
    try:
        obj = update_status(db, incident_id, payload.status, payload.reviewed_by)
    except IncidentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {
        "success": True,
        "message": "Incident updated successfully",
        "data": IncidentOut.model_validate(obj),
    }

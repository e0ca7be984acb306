from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.api.deps import get_authenticity
from app.api.forms import device_gps_from_form, parse_capture_time, read_capture
from app.config import Settings, get_settings
from app.services.exif.reader import extract_exif
from app.services.validation.authenticity import AuthenticityStrategy
from app.services.validation.pipeline import validate_submission

router = APIRouter()


@router.post("/preview")
def preview_validation(
    image: UploadFile = File(...),
    ward: Optional[str] = Form(None),
    gps_latitude: Optional[str] = Form(None, alias="gpsLatitude"),
    gps_longitude: Optional[str] = Form(None, alias="gpsLongitude"),
    gps_accuracy: Optional[str] = Form(None, alias="gpsAccuracy"),
    client_capture_time: Optional[str] = Form(None, alias="clientCaptureTime"),
    authenticity: AuthenticityStrategy = Depends(get_authenticity),
    settings: Settings = Depends(get_settings),
):
    """提出前の確認用。検証のみ行い、何も保存しない。"""
    capture = read_capture(image, settings.max_file_size, parse_capture_time(client_capture_time))
    exif = extract_exif(capture.data)
    report = validate_submission(
        capture,
        exif,
        device_gps_from_form(gps_latitude, gps_longitude, gps_accuracy),
        ward,
        authenticity,
    )
    return {
        "success": True,
        "validation": report.to_json_dict(),
        "exif": exif.model_dump(mode="json", by_alias=True) if exif else None,
    }

# backend/app/services/validation/quality.py
from __future__ import annotations
from typing import Optional

from app.schemas.validation import ExifMetadata, QualityCheck

MIN_FILE_SIZE = 50 * 1024
MAX_FILE_SIZE = 10 * 1024 * 1024
MIN_PIXELS = 640 * 480
ALLOWED_MIME_TYPES = ("image/jpeg", "image/jpg", "image/png")


def validate_quality(byte_size: int, mime_type: str, exif: Optional[ExifMetadata]) -> QualityCheck:
    """サイズ → 解像度 → 形式の順に判定し、最初の不合格理由を返す。"""
    size = exif.image_size if exif else None
    base = dict(
        file_size=byte_size,
        format=mime_type,
        resolution=str(size) if size else "",
    )

    if byte_size < MIN_FILE_SIZE:
        return QualityCheck(passed=False, message="File size very small - low quality image", **base)
    if byte_size > MAX_FILE_SIZE:
        return QualityCheck(passed=False, message="File size too large - please compress", **base)
    if size is not None and size.pixels < MIN_PIXELS:
        return QualityCheck(
            passed=False,
            message=f"Low resolution ({size}) - minimum 640x480",
            **base,
        )
    if mime_type not in ALLOWED_MIME_TYPES:
        return QualityCheck(passed=False, message="Invalid format - only JPEG/PNG allowed", **base)

    return QualityCheck(passed=True, message="Image quality acceptable", **base)

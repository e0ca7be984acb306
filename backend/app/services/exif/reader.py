# backend/app/services/exif/reader.py
from PIL import Image, UnidentifiedImageError
import exifread
from datetime import datetime, timedelta, timezone
from io import BytesIO
from math import isfinite
from typing import Optional
import logging

from app.schemas.validation import CameraInfo, ExifGps, ExifMetadata, ImageSize

logger = logging.getLogger(__name__)

EXIF_DT_FORMAT = "%Y:%m:%d %H:%M:%S"
GPS_IFD = 0x8825


def _to_float(value) -> float:
    # Pillow は IFDRational、古い書き込みは (num, den) のタプル
    if isinstance(value, tuple):
        return value[0] / value[1]
    return float(value)


def _to_deg(values, ref) -> Optional[float]:
    # 度・分・秒の3要素が揃わなければ欠落扱い
    if not values or len(values) < 3:
        return None
    d, m, s = (_to_float(v) for v in values[:3])
    deg = d + m/60 + s/3600
    if not isfinite(deg):
        return None
    if ref in ("S", "W"):
        deg *= -1
    return deg


def _parse_offset(raw: Optional[str]) -> timezone:
    # "+09:00" 形式。無ければ UTC とみなす
    if not raw:
        return timezone.utc
    try:
        sign = -1 if raw.startswith("-") else 1
        hours, minutes = raw.lstrip("+-").split(":")
        return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes)))
    except ValueError:
        return timezone.utc


def _parse_dt(tags: dict, key: str, offset_key: str) -> Optional[datetime]:
    if key not in tags:
        return None
    raw = str(tags[key]).strip()
    try:
        naive = datetime.strptime(raw, EXIF_DT_FORMAT)
    except ValueError:
        logger.debug("unparseable EXIF timestamp %s=%r", key, raw)
        return None
    offset = tags.get(offset_key)
    tz = _parse_offset(str(offset).strip() if offset is not None else None)
    return naive.replace(tzinfo=tz).astimezone(timezone.utc)


def _tag_str(tags: dict, key: str) -> Optional[str]:
    value = tags.get(key)
    if value is None:
        return None
    text = str(value).strip().strip("\x00")
    return text or None


def _read_gps(img: Image.Image) -> Optional[ExifGps]:
    # 壊れた GPS IFD は GPS だけ捨てる（日時・サイズは残す）
    try:
        gps_info = img.getexif().get_ifd(GPS_IFD)
        if not gps_info:
            return None
        lat = _to_deg(gps_info.get(2), gps_info.get(1))
        lon = _to_deg(gps_info.get(4), gps_info.get(3))
        alt = None
        if gps_info.get(6) is not None:
            alt = _to_float(gps_info.get(6))
            # GPSAltitudeRef: 1 = 海面下
            if gps_info.get(5) in (1, b"\x01"):
                alt *= -1
    except (TypeError, ValueError, ZeroDivisionError, IndexError) as e:
        logger.warning("ignoring malformed EXIF GPS: %s", e)
        return None
    if lat is None and lon is None and alt is None:
        return None
    return ExifGps(latitude=lat, longitude=lon, altitude=alt)


def extract_exif(data: bytes) -> Optional[ExifMetadata]:
    """画像バイト列から EXIF を抽出する。読めない画像は None（EXIF 無しと同じ扱い）。"""
    try:
        img = Image.open(BytesIO(data))
        width, height = img.size
        gps = _read_gps(img)
    except (UnidentifiedImageError, OSError, ValueError, ZeroDivisionError) as e:
        logger.warning("could not extract EXIF data: %s", e)
        return None

    # 生EXIF（日時・カメラ情報）
    try:
        tags = exifread.process_file(BytesIO(data), details=False)
    except Exception as e:  # exifread は壊れた IFD で様々な例外を投げる
        logger.warning("could not read EXIF tags: %s", e)
        tags = {}

    return ExifMetadata(
        date_time=_parse_dt(tags, "Image DateTime", "EXIF OffsetTime"),
        date_time_original=_parse_dt(tags, "EXIF DateTimeOriginal", "EXIF OffsetTimeOriginal"),
        gps=gps,
        camera=CameraInfo(
            make=_tag_str(tags, "Image Make"),
            model=_tag_str(tags, "Image Model"),
            software=_tag_str(tags, "Image Software"),
        ),
        image_size=ImageSize(width=width, height=height),
    )

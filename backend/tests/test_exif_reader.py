import os
from datetime import datetime, timedelta, timezone
from io import BytesIO

import pytest
from PIL import Image
from PIL.TiffImagePlugin import IFDRational

from app.services.exif.reader import extract_exif


def test_garbage_bytes_return_none():
    assert extract_exif(b"definitely not an image") is None
    assert extract_exif(b"") is None


def test_plain_image_has_size_only(image_factory):
    exif = extract_exif(image_factory(size=(800, 600)))
    assert exif is not None
    assert exif.image_size.width == 800
    assert exif.image_size.height == 600
    assert exif.date_time is None
    assert exif.date_time_original is None
    assert exif.gps is None


def test_png_dimensions(image_factory):
    exif = extract_exif(image_factory(size=(640, 480), fmt="PNG"))
    assert (exif.image_size.width, exif.image_size.height) == (640, 480)


def test_reads_timestamps_camera_and_gps(image_factory):
    taken = datetime(2026, 10, 19, 8, 30, 15, tzinfo=timezone.utc)
    exif = extract_exif(image_factory(taken_at=taken, gps=(28.70, 77.10), make="Acme"))
    assert exif.date_time_original == taken
    assert exif.date_time == taken
    assert exif.best_timestamp == taken
    assert exif.camera.make == "Acme"
    assert exif.gps.latitude == pytest.approx(28.70, abs=1e-5)
    assert exif.gps.longitude == pytest.approx(77.10, abs=1e-5)


def test_southern_western_coordinates_are_negative(image_factory):
    exif = extract_exif(image_factory(gps=(-33.8688, -70.6693)))
    assert exif.gps.latitude == pytest.approx(-33.8688, abs=1e-5)
    assert exif.gps.longitude == pytest.approx(-70.6693, abs=1e-5)


def test_recent_photo_is_fresh(image_factory, utcnow):
    exif = extract_exif(image_factory(taken_at=utcnow - timedelta(hours=2)))
    age = utcnow - exif.date_time_original
    assert timedelta(hours=1, minutes=59) < age < timedelta(hours=2, minutes=1)


def _jpeg_with_raw_gps(taken_at, gps_ifd):
    img = Image.frombytes("RGB", (800, 600), os.urandom(800 * 600 * 3))
    stamp = taken_at.strftime("%Y:%m:%d %H:%M:%S")
    exif = Image.Exif()
    exif[0x0132] = stamp
    exif[0x8769] = {0x9003: stamp}
    exif[0x8825] = gps_ifd
    buf = BytesIO()
    img.save(buf, format="JPEG", exif=exif.tobytes())
    return buf.getvalue()


def test_malformed_gps_drops_only_gps(utcnow):
    taken = (utcnow - timedelta(hours=1)).replace(microsecond=0)
    # 度・分のみで秒が無い GPSLatitude
    data = _jpeg_with_raw_gps(taken, {
        1: "N",
        2: (IFDRational(28, 1), IFDRational(42, 1)),
        3: "E",
        4: (IFDRational(77, 1), IFDRational(6, 1)),
    })

    exif = extract_exif(data)

    assert exif is not None
    assert exif.gps is None
    assert exif.date_time_original == taken
    assert (exif.image_size.width, exif.image_size.height) == (800, 600)

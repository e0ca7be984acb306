import os
import tempfile

# app.config / app.db は import 時に環境変数を読むので先に設定する
_TMP = tempfile.mkdtemp(prefix="incident-tests-")
os.environ["DATA_DIR"] = _TMP
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/test.db"
os.environ["AI_DETECTION_MODE"] = "simulated"

from datetime import datetime, timedelta, timezone
from fractions import Fraction
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from PIL.TiffImagePlugin import IFDRational

from app.api.deps import get_authenticity
from app.db import SessionLocal, init_db
from app.models.incident import Incident
from app.schemas.validation import AuthenticityCheck

EXIF_IFD = 0x8769
GPS_IFD = 0x8825


class FixedAuthenticity:
    def __init__(self, passed: bool = True):
        self.passed = passed
        self.calls = 0

    def __call__(self, capture):
        self.calls += 1
        return AuthenticityCheck(
            passed=self.passed,
            confidence=100 if self.passed else 0,
            message="fixed",
        )


def _dms(value: float):
    deg = int(value)
    minutes_f = (value - deg) * 60
    minutes = int(minutes_f)
    seconds = Fraction((minutes_f - minutes) * 60).limit_denominator(10000)
    return (
        IFDRational(deg, 1),
        IFDRational(minutes, 1),
        IFDRational(seconds.numerator, seconds.denominator),
    )


def make_image(
    size=(800, 600),
    taken_at: datetime | None = None,
    gps: tuple[float, float] | None = None,
    make: str | None = None,
    fmt: str = "JPEG",
) -> bytes:
    # ノイズ画像は圧縮が効かないので 50KiB 以上になる
    img = Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3))
    exif = Image.Exif()
    if make:
        exif[0x010F] = make
    if taken_at is not None:
        stamp = taken_at.astimezone(timezone.utc).strftime("%Y:%m:%d %H:%M:%S")
        exif[0x0132] = stamp
        exif[EXIF_IFD] = {0x9003: stamp}
    if gps is not None:
        lat, lon = gps
        exif[GPS_IFD] = {
            1: "N" if lat >= 0 else "S",
            2: _dms(abs(lat)),
            3: "E" if lon >= 0 else "W",
            4: _dms(abs(lon)),
        }
    buf = BytesIO()
    img.save(buf, format=fmt, exif=exif.tobytes() if len(exif) else b"")
    return buf.getvalue()


@pytest.fixture
def image_factory():
    return make_image


@pytest.fixture
def utcnow():
    return datetime.now(timezone.utc)


@pytest.fixture
def fresh_jpeg(utcnow):
    return make_image(taken_at=utcnow - timedelta(hours=2), gps=(28.70, 77.10))


@pytest.fixture
def authenticity():
    return FixedAuthenticity(passed=True)


@pytest.fixture
def client(authenticity):
    from app.main import app

    app.dependency_overrides[get_authenticity] = lambda: authenticity
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    init_db()
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def _clean_incidents():
    yield
    init_db()
    session = SessionLocal()
    session.query(Incident).delete()
    session.commit()
    session.close()

# backend/app/cli.py
"""Validate a local photo the way the submission endpoint does, without saving it."""
from __future__ import annotations
import argparse
import json
import logging
import mimetypes
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from app.config import load_settings
from app.schemas.validation import DeviceGps, ImageCapture
from app.services.exif.reader import extract_exif
from app.services.validation.authenticity import build_authenticity
from app.services.validation.pipeline import validate_submission


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="incident-validate", description=__doc__)
    p.add_argument("photo", type=Path)
    p.add_argument("--lat", type=float, help="device GPS latitude")
    p.add_argument("--lon", type=float, help="device GPS longitude")
    p.add_argument("--accuracy", type=float, help="device GPS accuracy (m)")
    p.add_argument("--zone", help="declared ward / zone name")
    p.add_argument("--mime", help="override the MIME type guessed from the file name")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _parser()
    args = parser.parse_args(argv)
    settings = load_settings()
    logging.basicConfig(level=settings.log_level)

    data = args.photo.read_bytes()
    mime = args.mime or mimetypes.guess_type(args.photo.name)[0] or "application/octet-stream"
    capture = ImageCapture.from_bytes(data, mime_type=mime, original_name=args.photo.name)

    gps = None
    if args.lat is not None and args.lon is not None:
        try:
            gps = DeviceGps(latitude=args.lat, longitude=args.lon, accuracy=args.accuracy)
        except ValidationError:
            parser.error("--lat/--lon must be finite and within +-90/+-180")

    report = validate_submission(
        capture, extract_exif(data), gps, args.zone, build_authenticity(settings),
    )
    print(json.dumps(report.to_json_dict(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

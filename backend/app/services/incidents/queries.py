# backend/app/services/incidents/queries.py
from __future__ import annotations
from math import ceil
from typing import Iterable, Optional
import csv
import io
import json

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.incident import Incident
from app.services.validation.scoring import round_half_up
from .errors import IncidentNotFoundError

TRAINING_CSV_COLUMNS = (
    "id", "type", "ward", "description", "status",
    "validation_overall_score", "image_url", "submitted_at",
)


def list_incidents(
    db: Session,
    status: Optional[str] = None,
    type: Optional[str] = None,
    ward: Optional[str] = None,
    min_score: Optional[int] = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Incident], dict]:
    q = db.query(Incident)
    if status:
        q = q.filter(Incident.status == status)
    if type:
        q = q.filter(Incident.type == type)
    if ward:
        q = q.filter(Incident.ward == ward)
    if min_score is not None:
        q = q.filter(Incident.validation_overall_score >= min_score)

    total = q.count()
    rows = (
        q.order_by(Incident.submitted_at.desc(), Incident.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pagination = {"page": page, "limit": limit, "total": total, "pages": ceil(total / limit)}
    return rows, pagination


def get_incident(db: Session, incident_id: int) -> Incident:
    obj = db.get(Incident, incident_id)
    if not obj:
        raise IncidentNotFoundError(incident_id)
    return obj


def incident_stats(db: Session) -> dict:
    by_status = [
        {
            "_id": status,
            "count": count,
            "avgScore": int(round_half_up(float(avg))) if avg is not None else 0,
        }
        for status, count, avg in (
            db.query(Incident.status, func.count(Incident.id), func.avg(Incident.validation_overall_score))
            .group_by(Incident.status)
            .order_by(Incident.status)
            .all()
        )
    ]
    by_type = [
        {"_id": t, "count": count}
        for t, count in (
            db.query(Incident.type, func.count(Incident.id))
            .group_by(Incident.type)
            .order_by(Incident.type)
            .all()
        )
    ]
    total = db.query(func.count(Incident.id)).scalar() or 0
    return {"byStatus": by_status, "byType": by_type, "total": total}


def training_data(db: Session, min_score: int) -> list[Incident]:
    """検証済みかつスコアが閾値以上の通報（学習用）。"""
    return (
        db.query(Incident)
        .filter(Incident.status == "verified")
        .filter(Incident.validation_overall_score >= min_score)
        .order_by(Incident.submitted_at.desc(), Incident.id.desc())
        .all()
    )


def training_csv(rows: Iterable[Incident]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(TRAINING_CSV_COLUMNS)
    for r in rows:
        w.writerow([
            r.id, r.type, r.ward, r.description or "", r.status,
            r.validation_overall_score, r.image_url,
            r.submitted_at.isoformat() if r.submitted_at else "",
        ])
    return buf.getvalue()


def incident_features(db: Session, status: Optional[str] = None) -> dict:
    """位置を持つ通報を GeoJSON FeatureCollection で返す。"""
    q = db.query(Incident).filter(Incident.location_point.isnot(None))
    if status:
        q = q.filter(Incident.status == status)
    feats: list[dict] = []
    for obj in q.order_by(Incident.id.asc()).all():
        try:
            geom = json.loads(obj.location_point)
        except ValueError:
            continue
        feats.append({
            "type": "Feature",
            "geometry": geom,
            "properties": {
                "incident_id": obj.id,
                "type": obj.type,
                "ward": obj.ward,
                "status": obj.status,
                "validation_overall_score": obj.validation_overall_score,
                "submitted_at": obj.submitted_at.isoformat() if obj.submitted_at else None,
                "thumbnail_url": obj.image_thumbnail_url,
            },
        })
    return {"type": "FeatureCollection", "features": feats}

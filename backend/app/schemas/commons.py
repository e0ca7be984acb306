# backend/app/schemas/commons.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Literal

IncidentType = Literal["waterlogging", "pothole", "drainage"]
IncidentStatus = Literal["pending", "verified", "rejected", "duplicate"]

INCIDENT_TYPES: tuple[str, ...] = IncidentType.__args__


class CamelModel(BaseModel):
    # 永続化・API 共通の JSON キーは camelCase
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


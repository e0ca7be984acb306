# backend/app/api/deps.py
from fastapi import Depends

from app.config import Settings, get_settings
from app.services.storage.local import LocalObjectStore
from app.services.validation.authenticity import AuthenticityStrategy, build_authenticity


def get_store(settings: Settings = Depends(get_settings)) -> LocalObjectStore:
    return LocalObjectStore(settings.data_dir)


def get_authenticity(settings: Settings = Depends(get_settings)) -> AuthenticityStrategy:
    return build_authenticity(settings)

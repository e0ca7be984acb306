# backend/app/config.py
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_CLASSIFIER_URL = "https://api.thehive.ai/api/v2/task/sync"


def _default_data_dir() -> Path:
    # コンテナでは /app/data、ローカル開発では repo 直下の data
    container_data = Path("/app/data")
    if container_data.exists():
        return container_data
    # backend/app/config.py → ../../.. = <repo root>
    return Path(__file__).resolve().parents[2] / "data"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    database_url: str
    max_file_size: int
    ai_detection_mode: str  # simulated | classifier | skip
    ai_detection_url: str
    ai_detection_api_key: str | None
    ai_detection_timeout: float
    training_min_score: int
    log_level: str

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


def _detection_mode() -> str:
    mode = os.getenv("AI_DETECTION_MODE")
    if mode:
        return mode.strip().lower()
    # 旧来のフラグ（true なら外部分類器）
    if os.getenv("AI_DETECTION_ENABLED", "").lower() == "true":
        return "classifier"
    return "simulated"


def load_settings() -> Settings:
    data_dir = Path(os.getenv("DATA_DIR") or _default_data_dir())

    # 1) DATABASE_URL が指定されていれば優先（例: postgresql+psycopg://...）
    # 2) それ以外は data_dir 配下の SQLite
    database_url = os.getenv("DATABASE_URL") or f"sqlite:///{data_dir / 'app.db'}"

    return Settings(
        data_dir=data_dir,
        database_url=database_url,
        max_file_size=int(os.getenv("MAX_FILE_SIZE") or DEFAULT_MAX_FILE_SIZE),
        ai_detection_mode=_detection_mode(),
        ai_detection_url=os.getenv("AI_DETECTION_URL") or DEFAULT_CLASSIFIER_URL,
        ai_detection_api_key=os.getenv("AI_DETECTION_API_KEY"),
        ai_detection_timeout=float(os.getenv("AI_DETECTION_TIMEOUT") or 10),
        training_min_score=int(os.getenv("TRAINING_MIN_SCORE") or 75),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()

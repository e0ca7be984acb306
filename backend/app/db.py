from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
import logging

from app.config import get_settings

# モデル定義側の Base（app.models.base）を利用してメタデータを統一
from app.models.base import Base

logger = logging.getLogger(__name__)

settings = get_settings()
SQLALCHEMY_DATABASE_URL = settings.database_url

if settings.is_sqlite:
    # ディレクトリ作成（存在しない場合）
    settings.data_dir.mkdir(parents=True, exist_ok=True)

_connect_args = {"check_same_thread": False} if settings.is_sqlite else {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args=_connect_args,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    # パッケージ配下の各モデルモジュールを明示 import してメタデータ登録を確実化
    import app.models.incident  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("database schema ready (%s)", engine.url.render_as_string(hide_password=True))


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# backend/app/services/storage/local.py
from dataclasses import dataclass
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

BUCKET = "incident-images"


@dataclass(frozen=True)
class StoredObject:
    path: str  # バケット内のキー
    url: str   # /data 配下の公開 URL


class ObjectExistsError(FileExistsError):
    pass


class LocalObjectStore:
    """data_dir/<bucket>/ に保存し、/data 静的配信の URL を返す。"""

    def __init__(self, data_dir: Path, bucket: str = BUCKET, url_prefix: str = "/data"):
        self.root = Path(data_dir) / bucket
        self.bucket = bucket
        self.url_prefix = url_prefix.rstrip("/")

    def _resolve(self, key: str) -> Path:
        target = (self.root / key).resolve()
        if self.root.resolve() not in target.parents:
            raise ValueError(f"invalid object key: {key}")
        return target

    def put(self, key: str, data: bytes) -> StoredObject:
        target = self._resolve(key)
        # upsert しない
        if target.exists():
            raise ObjectExistsError(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.debug("stored %s (%d bytes)", target, len(data))
        return StoredObject(path=key, url=f"{self.url_prefix}/{self.bucket}/{key}")

    def delete(self, key: str) -> None:
        self._resolve(key).unlink(missing_ok=True)

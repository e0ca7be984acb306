from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import logging

from app.api.routers import incidents, validation
from app.config import get_settings
from app.db import init_db

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Civic Incident Validation API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
def health():
    return {"ok": True}


# 初回起動時にDBスキーマを作成
@app.on_event("startup")
def on_startup():
    init_db()

app.include_router(incidents.router,  prefix="/incidents",  tags=["incidents"])
app.include_router(validation.router, prefix="/validation", tags=["validation"])

# /data を静的配信（保存画像の取得用）
settings.data_dir.mkdir(parents=True, exist_ok=True)
app.mount("/data", StaticFiles(directory=str(settings.data_dir)), name="data")

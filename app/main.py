# app/main.py
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from app.api import (
    auth,
    cron,
    date_invitations,
    game_prizes,
    games,
    letter_email,
    letters,
    notifications,
    quizzes,
    receivers,
    uploads,
)
from app.models.base import init_db, close_db
from app.schemas.commons_schemas import HealthResponse
from app.services.scheduler_service import scheduler_service
from app.services.storage_service import storage_service
from app.utils.errors import ConfigurationError
from app.utils.logger import setup_logger
from app.utils.middleware import DearlyCORSMiddleware, SecurityHeadersMiddleware, cors_options
from app.utils.time_utils import to_iso, utcnow
from app.config import settings
import uvicorn

SERVICE_NAME = "Dearly Backend API"

logger = setup_logger()

app = FastAPI(
    title=SERVICE_NAME,
    description="Letters, games and scheduled email delivery for Dearly",
    version="1.0.0",
    debug=settings.debug
)

app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)
app.add_middleware(DearlyCORSMiddleware, **cors_options())

@app.on_event("startup")
async def startup_event():
    logger.info(f"🚀 {SERVICE_NAME} starting ({settings.environment})")

    if settings.is_production and not settings.origin_list:
        raise ConfigurationError("ALLOWED_ORIGINS must be set in production")

    storage_service.ensure_dirs()
    await init_db()

    if settings.scheduler_enabled:
        scheduler_service.start()
    else:
        logger.info("⏸️ Email scheduler disabled")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"👋 {SERVICE_NAME} shutting down")
    scheduler_service.stop()
    await close_db()

# the mount needs the directory to exist at import time
storage_service.ensure_dirs()

for module in (
    letters,
    notifications,
    letter_email,
    cron,
    games,
    quizzes,
    game_prizes,
    date_invitations,
    receivers,
    auth,
    uploads,
):
    app.include_router(module.router, prefix="/api")

app.mount("/static", StaticFiles(directory=storage_service.root), name="static")


def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        service=SERVICE_NAME,
        timestamp=to_iso(utcnow()),
        environment=settings.environment,
    )

@app.get("/api/", response_model=HealthResponse)
async def root():
    return health()

@app.get("/health", response_model=HealthResponse)
async def health_check():
    return health()

if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )

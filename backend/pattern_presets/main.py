"""
Pattern presets backend service.

Run with:
    uvicorn pattern_presets.main:app --port 8085
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .bootstrap import build_service
from .config import Settings
from .logging_config import configure_logging
from .presets.service import PresetService
from .routes import presets

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[PresetService] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        settings: Configuration (default: read from the environment)
        service: Prebuilt service (default: built from settings)
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        notifier = app.state.preset_service.notifier
        if settings.poll_interval > 0:
            notifier.start_polling(settings.poll_interval)
        try:
            yield
        finally:
            notifier.stop_polling()

    app = FastAPI(title="Pattern Presets", version="0.1.0", lifespan=lifespan)

    # CORS middleware for frontend access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173"],  # Vite dev server
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service is constructed once and shared by every request
    app.state.preset_service = service or build_service(settings)

    app.include_router(presets.router)

    @app.get("/")
    async def root():
        return {"service": "pattern-presets", "status": "running"}

    @app.get("/health")
    async def health():
        stats = app.state.preset_service.store.stats()
        return {
            "status": "ok",
            "userPresetCount": stats.user_preset_count,
            "storageBytes": stats.total_storage_size,
        }

    return app


app = create_app()

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wellness_core.core.config import Settings, load_settings
from wellness_core.core.errors import (
    WellnessCoreError,
    unhandled_exception_handler,
    validation_exception_handler,
    wellness_exception_handler,
)
from wellness_core.core.logging import setup_logging
from wellness_core.db.base import get_db
from wellness_core.routers import attestations as attestations_router
from wellness_core.routers import burnout as burnout_router
from wellness_core.routers import emotional_labor as emotional_labor_router
from wellness_core.routers import insights as insights_router
from wellness_core.routers import reflections as reflections_router
from wellness_core.services.core import WellnessCore


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API. Settings are loaded from the environment when not given;
    a missing or weak ZKWV_SALT raises ConfigurationError here, before the
    app can serve anything.
    """
    settings = settings or load_settings()
    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    core = WellnessCore.init(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        core.close()

    app = FastAPI(
        title="Wellness Core API",
        description=(
            "**Privacy-preserving wellness analytics**\n\n"
            "Anonymizes self-reported reflections into weekly buckets, predicts "
            "burnout risk, quantifies emotional labor and issues signed "
            "attestation receipts. No raw identifiers or free text are stored.\n\n"
            "All error responses follow the `{code, message, details}` envelope."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.core = core

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers (most specific first) ---
    app.add_exception_handler(WellnessCoreError, wellness_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --- Routers ---
    app.include_router(reflections_router.router)
    app.include_router(insights_router.router)
    app.include_router(burnout_router.router)
    app.include_router(emotional_labor_router.router)
    app.include_router(attestations_router.router)

    @app.get("/health", tags=["health"], summary="Health check")
    def health(db: Session = Depends(get_db)):
        """
        Returns `{"status": "ok", "db": "ok"}` when both the API and the
        database are reachable. Returns HTTP 503 if the DB is down.
        """
        try:
            db.execute(text("SELECT 1"))
            db_status = "ok"
        except SQLAlchemyError:
            db_status = "unreachable"

        if db_status != "ok":
            return JSONResponse(
                status_code=503,
                content={"status": "error", "db": db_status},
            )
        return {"status": "ok", "db": "ok", "env": settings.APP_ENV}

    return app

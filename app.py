"""
DoseKeeper Backend
FastAPI application hosting the dose view, the dose log and the background
reminder scheduler
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Configuration and database
from config import settings, scheduler_config
from database import SessionLocal, engine, init_db, DatabaseHealthCheck

from actions.reminder_engine import NotificationScheduler, TimerBackend
from api import include_routers
from exceptions import InvalidRuleError, NotFoundError, StorageError
from services.dose_service import DoseService
from services.history_service import HistoryService
from services.medication_service import MedicationService
from services.storage_service import DurableStore
from tools.notification_service import InAppNotificationSurface, NotificationSurface
from tools.time_utils import get_local_timezone

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": True,
            "message": message,
            "status_code": status_code,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


def create_app(
    session_factory=None,
    surface: Optional[NotificationSurface] = None,
    timer_backend: Optional[TimerBackend] = None,
    clock: Optional[Callable[[], datetime]] = None,
    tz=None
) -> FastAPI:
    """
    Build the application. Arguments override the production collaborators.
    """

    # ==================== LIFESPAN ====================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup and shutdown"""
        # Startup
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
        logger.info(f"Environment: {settings.ENV}")

        bind = session_factory.kw.get("bind") if session_factory else engine
        try:
            init_db(bind)
        except Exception as e:
            logger.error(f"Database initialization failed: {e}")
            raise

        local_tz = tz or get_local_timezone()
        store = DurableStore(session_factory or SessionLocal)
        notification_surface = surface or InAppNotificationSurface(clock=clock)
        scheduler = NotificationScheduler(
            store,
            notification_surface,
            timer_backend=timer_backend,
            clock=clock,
            tz=local_tz
        )
        medication_service = MedicationService(store, scheduler, clock=clock, tz=local_tz)
        history_service = HistoryService(store, medication_service, clock=clock, tz=local_tz)

        app.state.db_bind = bind
        app.state.timezone = local_tz
        app.state.store = store
        app.state.notification_surface = notification_surface
        app.state.scheduler = scheduler
        app.state.medication_service = medication_service
        app.state.history_service = history_service
        app.state.dose_service = DoseService(medication_service, history_service, clock=clock, tz=local_tz)

        await scheduler.activate()

        yield

        # Shutdown
        await scheduler.shutdown()
        logger.info(f"Shutting down {settings.APP_NAME}")

    # ==================== APP INITIALIZATION ====================

    app = FastAPI(
        title=settings.APP_NAME,
        description="""
        ## DoseKeeper API

        Medication reminders driven by per-medication dosing rules.

        ### Features
        - **Daily doses**: fixed-time, interval and as-needed rules expanded per day
        - **Dose log**: record and delete taken doses
        - **Reminders**: background scheduler with a 48 hour horizon and snooze
        """,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Attach modular API routers
    include_routers(app, prefix=settings.API_PREFIX)

    # ==================== EXCEPTION HANDLERS ====================

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc: HTTPException):
        return _error_response(exc.status_code, exc.detail)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request, exc: NotFoundError):
        return _error_response(404, str(exc))

    @app.exception_handler(InvalidRuleError)
    async def invalid_rule_handler(request, exc: InvalidRuleError):
        return _error_response(400, str(exc))

    @app.exception_handler(StorageError)
    async def storage_error_handler(request, exc: StorageError):
        logger.error(f"Storage failure: {exc}")
        return _error_response(503, "Storage unavailable, change not saved")

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc: Exception):
        logger.error(f"Unexpected error: {exc}", exc_info=True)
        return _error_response(
            500,
            "An unexpected error occurred" if not settings.DEBUG else str(exc)
        )

    # ==================== HEALTH ENDPOINTS ====================

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint - basic health check"""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Detailed health check endpoint"""
        db_connected = DatabaseHealthCheck.is_connected(app.state.db_bind)
        scheduler = app.state.scheduler

        return {
            "status": "healthy" if db_connected else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                "database": {
                    "status": "up" if db_connected else "down"
                },
                "scheduler": {
                    "active": scheduler.is_active,
                    "state": scheduler.state.value,
                    "armed_timers": len(scheduler.armed_timers)
                }
            },
            "config": {
                "horizon_hours": scheduler_config.HORIZON_HOURS,
                "rearm_interval_hours": scheduler_config.REARM_INTERVAL_HOURS,
                "max_snoozes": scheduler_config.MAX_SNOOZES
            },
            "version": settings.APP_VERSION,
            "environment": settings.ENV
        }

    return app


app = create_app()


# ==================== MAIN ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )

"""
API Module
FastAPI routers for the DoseKeeper application
"""

from api.medications import router as medications_router
from api.doses import router as doses_router
from api.history import router as history_router
from api.notifications import router as notifications_router

from api.deps import services


__all__ = [
    # Routers
    "medications_router",
    "doses_router",
    "history_router",
    "notifications_router",
    # Dependencies
    "services",
]


def include_routers(app, prefix: str = "/api/v1"):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(medications_router, prefix=prefix)
    app.include_router(doses_router, prefix=prefix)
    app.include_router(history_router, prefix=prefix)
    app.include_router(notifications_router, prefix=prefix)

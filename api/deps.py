"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from fastapi import Request

from actions.reminder_engine import NotificationScheduler
from services.dose_service import DoseService
from services.history_service import HistoryService
from services.medication_service import MedicationService
from tools.notification_service import NotificationSurface


class ServiceDependency:
    """
    Dependency injection for services.
    Instances are built once by the application lifespan and live on
    app.state.
    """

    @staticmethod
    def get_medication_service(request: Request) -> MedicationService:
        return request.app.state.medication_service

    @staticmethod
    def get_history_service(request: Request) -> HistoryService:
        return request.app.state.history_service

    @staticmethod
    def get_dose_service(request: Request) -> DoseService:
        return request.app.state.dose_service

    @staticmethod
    def get_scheduler(request: Request) -> NotificationScheduler:
        return request.app.state.scheduler

    @staticmethod
    def get_notification_surface(request: Request) -> NotificationSurface:
        return request.app.state.notification_surface

    @staticmethod
    def get_timezone(request: Request):
        return request.app.state.timezone


# Service dependency instances
services = ServiceDependency()

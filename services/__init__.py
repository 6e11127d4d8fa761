"""
Services Module
Business logic layer for the DoseKeeper application
"""

from services.storage_service import DurableStore
from services.medication_service import MedicationService
from services.history_service import HistoryService
from services.dose_service import DoseService


__all__ = [
    "DurableStore",
    "MedicationService",
    "HistoryService",
    "DoseService",
]

"""
Medication Service
Business logic for the user's medication set
"""

import logging
import uuid
from typing import Callable, List, Optional, TYPE_CHECKING
from datetime import date, datetime, tzinfo

from config import StorageKeys
from exceptions import NotFoundError
from services.storage_service import DurableStore
from tools.regimen import Frequency, Medication, medications_from_list, medications_to_list
from tools.time_utils import get_local_timezone, now

if TYPE_CHECKING:
    from actions.reminder_engine import NotificationScheduler


logger = logging.getLogger(__name__)


class MedicationService:
    """
    Service for medication-related operations.

    Every mutation persists the whole set first and only then replaces the
    in-memory copy, so a failed write leaves the set as it was. The
    scheduler is told about each new set.
    """

    def __init__(
        self,
        store: DurableStore,
        scheduler: Optional["NotificationScheduler"] = None,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None
    ):
        self._store = store
        self._scheduler = scheduler
        self._tz = tz or get_local_timezone()
        self._clock = clock or (lambda: now(self._tz))
        self._medications: Optional[List[Medication]] = None

    def _load(self) -> List[Medication]:
        if self._medications is None:
            items = self._store.get_json(StorageKeys.MEDICATIONS, default=[])
            try:
                self._medications = medications_from_list(items or [])
            except (KeyError, ValueError, TypeError) as e:
                logger.error(f"Error parsing stored medications: {e}")
                self._medications = []
        return self._medications

    def _commit(self, medications: List[Medication]):
        self._store.set_json(StorageKeys.MEDICATIONS, medications_to_list(medications))
        self._medications = medications
        if self._scheduler is not None:
            self._scheduler.notify_medication_set_changed(medications)

    async def list_medications(self) -> List[Medication]:
        """All medications, in insertion order"""
        return list(self._load())

    async def get_medication(self, medication_id: str) -> Medication:
        """Get medication by ID"""
        medication = next((m for m in self._load() if m.id == medication_id), None)
        if medication is None:
            raise NotFoundError("Medication", medication_id)
        return medication

    async def add_medication(
        self,
        name: str,
        frequency: Frequency,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> Medication:
        """
        Add a new medication

        Args:
            name: Display name
            frequency: FixedTimes, IntervalHours or AsNeeded rule
            start_date: First day (default: today, local)
            end_date: Last day, inclusive (if temporary)

        Returns:
            Created Medication
        """
        medication = Medication(
            id=str(uuid.uuid4()),
            name=name,
            frequency=frequency,
            start_date=start_date or self._clock().astimezone(self._tz).date(),
            end_date=end_date
        )
        self._commit(self._load() + [medication])

        logger.info(f"Added medication {name} ({medication.id})")
        return medication

    async def update_medication(self, medication: Medication) -> Medication:
        """Replace a medication by ID"""
        current = self._load()
        if not any(m.id == medication.id for m in current):
            raise NotFoundError("Medication", medication.id)

        self._commit([medication if m.id == medication.id else m for m in current])

        logger.info(f"Updated medication {medication.id} ({medication.name})")
        return medication

    async def remove_medication(self, medication_id: str) -> None:
        """Remove a medication; its history entries are kept"""
        current = self._load()
        if not any(m.id == medication_id for m in current):
            raise NotFoundError("Medication", medication_id)

        self._commit([m for m in current if m.id != medication_id])
        logger.info(f"Removed medication {medication_id}")

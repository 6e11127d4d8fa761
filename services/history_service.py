"""
History Service
Append-only log of taken doses
"""

import logging
import uuid
from dataclasses import replace
from typing import Callable, List, Optional
from datetime import datetime, tzinfo

from config import StorageKeys
from exceptions import StorageError
from services.medication_service import MedicationService
from services.storage_service import DurableStore
from tools.regimen import HistoryEntry, IntervalHours
from tools.time_utils import get_local_timezone, now, to_epoch_ms, to_local_hhmm


logger = logging.getLogger(__name__)


class HistoryService:
    """
    Service for the taken-dose log.

    Recording does not de-duplicate: two records for the same slot on the
    same day are both kept, and the reconciler surfaces the first.
    """

    def __init__(
        self,
        store: DurableStore,
        medication_service: MedicationService,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None
    ):
        self._store = store
        self._medication_service = medication_service
        self._tz = tz or get_local_timezone()
        self._clock = clock or (lambda: now(self._tz))
        self._entries: Optional[List[HistoryEntry]] = None

    def _load(self) -> List[HistoryEntry]:
        if self._entries is None:
            items = self._store.get_json(StorageKeys.HISTORY, default=[])
            try:
                self._entries = [HistoryEntry.from_dict(item) for item in items or []]
            except (KeyError, ValueError, TypeError) as e:
                logger.error(f"Error parsing stored history: {e}")
                self._entries = []
        return self._entries

    def _commit(self, entries: List[HistoryEntry]):
        self._store.set_json(StorageKeys.HISTORY, [e.to_dict() for e in entries])
        self._entries = entries

    async def get_entries(self) -> List[HistoryEntry]:
        """Raw log, in recording order"""
        return list(self._load())

    async def list_history(self) -> List[HistoryEntry]:
        """Log sorted newest first"""
        return sorted(self._load(), key=lambda e: e.taken_at, reverse=True)

    async def record_taken(self, medication_id: str, scheduled_time: str) -> HistoryEntry:
        """
        Record that a dose was taken now

        Args:
            medication_id: Medication ID (must exist)
            scheduled_time: "HH:MM" slot satisfied, or "Livre"

        Returns:
            The appended HistoryEntry
        """
        medication = await self._medication_service.get_medication(medication_id)

        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            medication_id=medication.id,
            medication_name=medication.name,
            taken_at=to_epoch_ms(self._clock()),
            scheduled_time=scheduled_time
        )
        self._commit(self._load() + [entry])

        logger.info(f"Recorded {medication.name} taken for slot {scheduled_time}")
        return entry

    async def take_dose(
        self,
        medication_id: str,
        scheduled_time: str,
        recalculate_next_dose: bool = False
    ) -> HistoryEntry:
        """
        Record a dose and optionally re-anchor an interval rule.

        With recalculate_next_dose, an IntervalHours medication gets its
        first_dose_time set to the local time the dose was taken, which
        moves future doses. Recorded history is unaffected. A failed re-anchor
        write is logged and the recorded entry is still returned.
        """
        entry = await self.record_taken(medication_id, scheduled_time)

        if recalculate_next_dose:
            medication = await self._medication_service.get_medication(medication_id)
            if isinstance(medication.frequency, IntervalHours):
                first_dose_time = to_local_hhmm(entry.taken_at, self._tz)
                try:
                    await self._medication_service.update_medication(
                        replace(
                            medication,
                            frequency=replace(medication.frequency, first_dose_time=first_dose_time)
                        )
                    )
                except StorageError as e:
                    logger.warning(f"Dose {entry.id} recorded but {medication.name} not re-anchored: {e}")
                else:
                    logger.info(f"Re-anchored {medication.name} to first dose at {first_dose_time}")

        return entry

    async def delete_entry(self, entry_id: str) -> None:
        """Remove an entry; unknown IDs are ignored"""
        current = self._load()
        if not any(e.id == entry_id for e in current):
            return

        self._commit([e for e in current if e.id != entry_id])
        logger.info(f"Deleted history entry {entry_id}")

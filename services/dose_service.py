"""
Dose Service
Daily dose view: generated doses reconciled with the taken-dose log
"""

from typing import Callable, List, Optional, Tuple
from datetime import date, datetime, tzinfo

from services.history_service import HistoryService
from services.medication_service import MedicationService
from tools.reconciler import generate_doses
from tools.regimen import Dose
from tools.time_utils import get_local_timezone, now


class DoseService:
    """Service for the doses of a day"""

    def __init__(
        self,
        medication_service: MedicationService,
        history_service: HistoryService,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None
    ):
        self._medication_service = medication_service
        self._history_service = history_service
        self._tz = tz or get_local_timezone()
        self._clock = clock or (lambda: now(self._tz))

    def today(self) -> date:
        """Current local calendar date"""
        return self._clock().astimezone(self._tz).date()

    async def get_daily_doses(self, target_date: Optional[date] = None) -> List[Dose]:
        """Doses for a day (default: today), scheduled first, as-needed last"""
        target_date = target_date or self.today()
        medications = await self._medication_service.list_medications()
        history = await self._history_service.get_entries()
        return generate_doses(medications, history, target_date, self._tz)

    @staticmethod
    def split_scheduled(doses: List[Dose]) -> Tuple[List[Dose], List[Dose]]:
        """(scheduled doses, as-needed doses)"""
        scheduled = [d for d in doses if not d.is_as_needed]
        as_needed = [d for d in doses if d.is_as_needed]
        return scheduled, as_needed

"""
Dose Schemas
Pydantic models for daily doses and the taken-dose history
"""

from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, Field

from tools.regimen import Dose, HistoryEntry
from tools.time_utils import from_epoch_ms


SLOT_PATTERN = r"^((([01]\d|2[0-3]):([0-5]\d))|Livre)$"


# ==================== REQUEST SCHEMAS ====================

class TakeDoseRequest(BaseModel):
    """Schema for recording a taken dose"""
    medication_id: str = Field(..., min_length=1)
    scheduled_time: str = Field(..., pattern=SLOT_PATTERN, examples=["08:00", "Livre"])
    recalculate_next_dose: bool = False


# ==================== RESPONSE SCHEMAS ====================

class HistoryEntryResponse(BaseModel):
    """Schema for one taken-dose entry"""
    id: str
    medication_id: str
    medication_name: str
    taken_at: int = Field(..., description="Epoch milliseconds")
    taken_at_local: datetime
    scheduled_time: str

    @classmethod
    def from_domain(cls, entry: HistoryEntry, tz=None) -> "HistoryEntryResponse":
        return cls(
            id=entry.id,
            medication_id=entry.medication_id,
            medication_name=entry.medication_name,
            taken_at=entry.taken_at,
            taken_at_local=from_epoch_ms(entry.taken_at, tz),
            scheduled_time=entry.scheduled_time
        )


class HistoryList(BaseModel):
    """Schema for the history log, newest first"""
    entries: List[HistoryEntryResponse]
    total: int


class DoseResponse(BaseModel):
    """Schema for one dose of a day"""
    medication_id: str
    medication_name: str
    scheduled_time: str
    is_as_needed: bool
    taken: bool
    taken_entry: Optional[HistoryEntryResponse] = None

    @classmethod
    def from_domain(cls, dose: Dose, tz=None) -> "DoseResponse":
        return cls(
            medication_id=dose.medication_id,
            medication_name=dose.medication_name,
            scheduled_time=dose.scheduled_time,
            is_as_needed=dose.is_as_needed,
            taken=dose.is_taken,
            taken_entry=(
                HistoryEntryResponse.from_domain(dose.taken_entry, tz)
                if dose.taken_entry else None
            )
        )


class DailyDoses(BaseModel):
    """Schema for the doses of one day"""
    target_date: date
    scheduled: List[DoseResponse]
    as_needed: List[DoseResponse]
    total_scheduled: int
    taken_count: int

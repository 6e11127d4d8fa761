"""
Regimen Types
Medication dosing rules, taken-dose history entries and derived doses
"""

from typing import Dict, List, Optional, Any, Union
from dataclasses import dataclass, field
from datetime import date
from enum import Enum


# Scheduled time recorded for as-needed doses
AS_NEEDED_SLOT = "Livre"


class FrequencyKind(str, Enum):
    """Dosing rule kinds"""
    FIXED_TIMES = "fixed_times"
    INTERVAL_HOURS = "interval_hours"
    AS_NEEDED = "as_needed"


@dataclass(frozen=True)
class FixedTimes:
    """Explicit daily clock times, kept in the order they were entered"""
    times: tuple = ()
    kind: FrequencyKind = field(default=FrequencyKind.FIXED_TIMES, init=False)

    def __post_init__(self):
        object.__setattr__(self, "times", tuple(self.times))

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "times": list(self.times)}


@dataclass(frozen=True)
class IntervalHours:
    """First dose of the day plus a fixed spacing, truncated at midnight"""
    interval_hours: int
    first_dose_time: str
    kind: FrequencyKind = field(default=FrequencyKind.INTERVAL_HOURS, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "interval_hours": self.interval_hours,
            "first_dose_time": self.first_dose_time
        }


@dataclass(frozen=True)
class AsNeeded:
    """No schedule; doses are logged ad hoc"""
    kind: FrequencyKind = field(default=FrequencyKind.AS_NEEDED, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value}


Frequency = Union[FixedTimes, IntervalHours, AsNeeded]


def frequency_from_dict(data: Dict[str, Any]) -> Frequency:
    """Build the frequency variant named by the "kind" tag"""
    kind = FrequencyKind(data["kind"])
    if kind == FrequencyKind.FIXED_TIMES:
        return FixedTimes(times=tuple(data.get("times", ())))
    if kind == FrequencyKind.INTERVAL_HOURS:
        return IntervalHours(
            interval_hours=int(data["interval_hours"]),
            first_dose_time=data["first_dose_time"]
        )
    return AsNeeded()


@dataclass(frozen=True)
class Medication:
    """A medication and its dosing rule"""
    id: str
    name: str
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None

    @property
    def frequency_kind(self) -> FrequencyKind:
        return self.frequency.kind

    def is_active_on(self, day: date) -> bool:
        """Whole-day range check, both ends inclusive"""
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "frequency": self.frequency.to_dict(),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Medication":
        end_date = data.get("end_date")
        return cls(
            id=data["id"],
            name=data["name"],
            frequency=frequency_from_dict(data["frequency"]),
            start_date=date.fromisoformat(data["start_date"]),
            end_date=date.fromisoformat(end_date) if end_date else None
        )


@dataclass(frozen=True)
class HistoryEntry:
    """One taken dose. taken_at is epoch milliseconds."""
    id: str
    medication_id: str
    medication_name: str
    taken_at: int
    scheduled_time: str

    @property
    def is_as_needed(self) -> bool:
        return self.scheduled_time == AS_NEEDED_SLOT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "medication_id": self.medication_id,
            "medication_name": self.medication_name,
            "taken_at": self.taken_at,
            "scheduled_time": self.scheduled_time
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            id=data["id"],
            medication_id=data["medication_id"],
            medication_name=data["medication_name"],
            taken_at=int(data["taken_at"]),
            scheduled_time=data["scheduled_time"]
        )


@dataclass(frozen=True)
class Dose:
    """One expected intake on a given day, derived on demand"""
    medication_id: str
    medication_name: str
    scheduled_time: str
    is_as_needed: bool
    medication: Medication
    taken_entry: Optional[HistoryEntry] = None

    @property
    def is_taken(self) -> bool:
        return self.taken_entry is not None


def medications_to_list(medications: List[Medication]) -> List[Dict[str, Any]]:
    return [m.to_dict() for m in medications]


def medications_from_list(items: List[Dict[str, Any]]) -> List[Medication]:
    return [Medication.from_dict(item) for item in items]

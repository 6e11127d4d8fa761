"""
History Reconciler
Marks each generated dose with the history entry that satisfied it
"""

from dataclasses import replace
from typing import Iterable, List, Optional
from datetime import date, tzinfo

from tools.regimen import Dose, HistoryEntry, Medication
from tools.scheduler import occurrence_generator
from tools.time_utils import get_local_timezone, local_date_of


def reconcile(
    doses: Iterable[Dose],
    history: Iterable[HistoryEntry],
    target_date: date,
    tz: Optional[tzinfo] = None
) -> List[Dose]:
    """
    Attach taken entries to the doses of a day.

    Only entries taken on target_date (local) are considered. A scheduled
    dose takes the first entry with the same medication id and the same
    scheduled time; later duplicates stay visible only in the raw history.
    As-needed doses never carry an entry.
    """
    tz = tz or get_local_timezone()
    day_entries = [
        entry for entry in history
        if local_date_of(entry.taken_at, tz) == target_date
    ]

    reconciled = []
    for dose in doses:
        taken_entry = None
        if not dose.is_as_needed:
            taken_entry = next(
                (
                    entry for entry in day_entries
                    if entry.medication_id == dose.medication_id
                    and entry.scheduled_time == dose.scheduled_time
                ),
                None
            )
        reconciled.append(replace(dose, taken_entry=taken_entry))

    return reconciled


def generate_doses(
    medications: Iterable[Medication],
    history: Iterable[HistoryEntry],
    target_date: date,
    tz: Optional[tzinfo] = None
) -> List[Dose]:
    """Generate a day's doses and reconcile them against the history log"""
    tz = tz or get_local_timezone()
    doses = occurrence_generator.generate(medications, target_date, tz)
    return reconcile(doses, list(history), target_date, tz)

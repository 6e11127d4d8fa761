"""
Dose Occurrence Generator
Expands medication dosing rules into the ordered doses of one calendar day
"""

import logging
from typing import Iterable, List, Optional
from datetime import date, tzinfo

from exceptions import InvalidRuleError
from tools.regimen import (
    AS_NEEDED_SLOT,
    AsNeeded,
    Dose,
    FixedTimes,
    IntervalHours,
    Medication,
)
from tools.time_utils import (
    add_hours,
    get_local_timezone,
    local_date_of,
    parse_hhmm_on_date,
    to_local_hhmm,
)


logger = logging.getLogger(__name__)


class DoseOccurrenceGenerator:
    """
    Deterministic, side-effect free dose generation.

    Scheduled doses are ordered by their "HH:MM" string (chronological
    because of zero-padding); as-needed doses follow all scheduled ones.
    The sort is stable, so ties keep medication order.
    """

    def generate(
        self,
        medications: Iterable[Medication],
        target_date: date,
        tz: Optional[tzinfo] = None
    ) -> List[Dose]:
        """
        Generate the doses of every medication for a calendar day

        Args:
            medications: Full medication set
            target_date: Local calendar date
            tz: Local zone (default: configured zone)

        Returns:
            Ordered list of doses without taken entries
        """
        tz = tz or get_local_timezone()
        doses: List[Dose] = []

        for medication in medications:
            doses.extend(self.occurrences_for(medication, target_date, tz))

        return sorted(doses, key=self._sort_key)

    def occurrences_for(
        self,
        medication: Medication,
        target_date: date,
        tz: Optional[tzinfo] = None
    ) -> List[Dose]:
        """Doses of a single medication for a day, in rule order"""
        if not medication.is_active_on(target_date):
            return []

        frequency = medication.frequency

        if isinstance(frequency, FixedTimes):
            return [
                self._dose(medication, scheduled_time)
                for scheduled_time in frequency.times
            ]

        if isinstance(frequency, IntervalHours):
            try:
                times = self._expand_interval(frequency, target_date, tz or get_local_timezone())
            except InvalidRuleError as e:
                logger.warning(f"Skipping invalid rule for medication {medication.id}: {e}")
                return []
            return [self._dose(medication, scheduled_time) for scheduled_time in times]

        if isinstance(frequency, AsNeeded):
            return [self._dose(medication, AS_NEEDED_SLOT, is_as_needed=True)]

        logger.warning(f"Unknown frequency {frequency!r} for medication {medication.id}")
        return []

    def _expand_interval(
        self,
        rule: IntervalHours,
        target_date: date,
        tz: tzinfo
    ) -> List[str]:
        """Doses from the first daily time, stopping once the cursor leaves the day"""
        if rule.interval_hours < 1:
            raise InvalidRuleError(f"interval_hours must be >= 1, got {rule.interval_hours}")

        times = []
        cursor = parse_hhmm_on_date(rule.first_dose_time, target_date, tz)
        while local_date_of(cursor, tz) == target_date:
            times.append(to_local_hhmm(cursor, tz))
            cursor = add_hours(cursor, rule.interval_hours)
        return times

    @staticmethod
    def _dose(medication: Medication, scheduled_time: str, is_as_needed: bool = False) -> Dose:
        return Dose(
            medication_id=medication.id,
            medication_name=medication.name,
            scheduled_time=scheduled_time,
            is_as_needed=is_as_needed,
            medication=medication
        )

    @staticmethod
    def _sort_key(dose: Dose):
        if dose.is_as_needed:
            return (1, "")
        return (0, dose.scheduled_time)


# Singleton instance
occurrence_generator = DoseOccurrenceGenerator()


def generate_occurrences(
    medications: Iterable[Medication],
    target_date: date,
    tz: Optional[tzinfo] = None
) -> List[Dose]:
    """Convenience function to generate a day's doses"""
    return occurrence_generator.generate(medications, target_date, tz)

"""
Tools Package
Dose scheduling engine: time utilities, regimen types, occurrence
generation, reconciliation and the notification surface
"""

from .time_utils import (
    get_local_timezone,
    to_local_hhmm,
    parse_hhmm_on_date,
    today_date_key,
    local_date_of,
)

from .regimen import (
    AS_NEEDED_SLOT,
    FrequencyKind,
    FixedTimes,
    IntervalHours,
    AsNeeded,
    Medication,
    HistoryEntry,
    Dose,
)

from .scheduler import (
    DoseOccurrenceGenerator,
    occurrence_generator,
    generate_occurrences,
)

from .reconciler import (
    reconcile,
    generate_doses,
)

from .notification_service import (
    NotificationSurface,
    InAppNotificationSurface,
    NotificationAction,
    PermissionStatus,
    ShownNotification,
)

__all__ = [
    # Time Utilities
    "get_local_timezone",
    "to_local_hhmm",
    "parse_hhmm_on_date",
    "today_date_key",
    "local_date_of",

    # Regimen
    "AS_NEEDED_SLOT",
    "FrequencyKind",
    "FixedTimes",
    "IntervalHours",
    "AsNeeded",
    "Medication",
    "HistoryEntry",
    "Dose",

    # Occurrence Generator
    "DoseOccurrenceGenerator",
    "occurrence_generator",
    "generate_occurrences",

    # Reconciler
    "reconcile",
    "generate_doses",

    # Notification Surface
    "NotificationSurface",
    "InAppNotificationSurface",
    "NotificationAction",
    "PermissionStatus",
    "ShownNotification",
]

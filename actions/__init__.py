"""
Actions Module
Background reminder scheduling
"""

from .reminder_engine import (
    ArmedTimer,
    AsyncioTimerBackend,
    NotificationScheduler,
    SchedulerState,
    SnoozeChain,
    SnoozeState,
    TimerBackend,
)


__all__ = [
    "ArmedTimer",
    "AsyncioTimerBackend",
    "NotificationScheduler",
    "SchedulerState",
    "SnoozeChain",
    "SnoozeState",
    "TimerBackend",
]

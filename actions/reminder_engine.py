"""
Reminder Engine
Background notification scheduler: arms one timer per upcoming dose inside
a rolling horizon, fires reminders and runs bounded snooze chains
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from functools import partial

from config import scheduler_config, StorageKeys
from exceptions import InvalidRuleError, PermissionDeniedError, StorageError
from services.storage_service import DurableStore
from tools.notification_service import (
    NotificationAction,
    NotificationSurface,
    PermissionStatus,
    format_reminder,
)
from tools.regimen import Medication, medications_from_list, medications_to_list
from tools.scheduler import DoseOccurrenceGenerator, occurrence_generator
from tools.time_utils import (
    days_between,
    get_local_timezone,
    local_date_of,
    now,
    parse_hhmm_on_date,
    to_epoch_ms,
)


logger = logging.getLogger(__name__)


TimerKey = Tuple[str, datetime]


class SchedulerState(str, Enum):
    """Scheduler state, derived from the armed timer set"""
    IDLE = "idle"
    SCHEDULED = "scheduled"


class SnoozeState(str, Enum):
    """States of one fired reminder"""
    FIRED = "fired"
    SNOOZED = "snoozed"
    EXPIRED = "expired"
    DISMISSED = "dismissed"


# ==================== TIMERS ====================

class TimerBackend(ABC):
    """Arms one-shot timers; returned handles expose cancel()"""

    def bind(self, loop: asyncio.AbstractEventLoop):
        """Attach to the event loop the scheduler runs on"""

    @abstractmethod
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> Any:
        """Run callback after delay_seconds"""


class AsyncioTimerBackend(TimerBackend):
    """Timers as event loop call_later handles"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def bind(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_seconds, callback)


@dataclass
class ArmedTimer:
    """A timer armed for one dose occurrence"""
    medication_id: str
    medication_name: str
    fire_at: datetime
    handle: Any = None

    @property
    def key(self) -> TimerKey:
        return (self.medication_id, self.fire_at)

    def cancel(self):
        if self.handle is not None:
            self.handle.cancel()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "medication_id": self.medication_id,
            "medication_name": self.medication_name,
            "fire_at": self.fire_at.isoformat()
        }


@dataclass
class SnoozeChain:
    """
    Lifecycle of one fired reminder:
    fired(n) -> snoozed(n+1) -> fired(n+1) ... -> expired

    A snooze is accepted only from the fired state while
    snooze_count < max_snoozes; the next request expires the chain.
    """
    tag: str
    medication_id: str
    medication_name: str
    occurrence_at: datetime
    max_snoozes: int = scheduler_config.MAX_SNOOZES
    snooze_count: int = 0
    state: SnoozeState = SnoozeState.FIRED
    last_fired_at: Optional[datetime] = None
    handle: Any = field(default=None, repr=False)

    @property
    def is_open(self) -> bool:
        return self.state in (SnoozeState.FIRED, SnoozeState.SNOOZED)

    def snooze(self) -> bool:
        """Transition fired -> snoozed; False when the guard rejects it"""
        if self.state != SnoozeState.FIRED:
            return False
        if self.snooze_count >= self.max_snoozes:
            self.state = SnoozeState.EXPIRED
            return False
        self.snooze_count += 1
        self.state = SnoozeState.SNOOZED
        return True

    def refire(self, fired_at: datetime) -> bool:
        """Transition snoozed -> fired when the snooze timer elapses"""
        if self.state != SnoozeState.SNOOZED:
            return False
        self.state = SnoozeState.FIRED
        self.last_fired_at = fired_at
        self.handle = None
        return True

    def dismiss(self):
        self.cancel()
        self.state = SnoozeState.DISMISSED

    def cancel(self):
        if self.handle is not None:
            self.handle.cancel()
            self.handle = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag,
            "medication_id": self.medication_id,
            "medication_name": self.medication_name,
            "occurrence_at": self.occurrence_at.isoformat(),
            "snooze_count": self.snooze_count,
            "max_snoozes": self.max_snoozes,
            "state": self.state.value
        }


def make_tag(medication_id: str, occurrence_at: datetime) -> str:
    """Opaque notification tag carrying the occurrence instant"""
    return f"medication-{medication_id}-{to_epoch_ms(occurrence_at)}"


# ==================== SCHEDULER ====================

class NotificationScheduler:
    """
    Background reminder scheduler.

    Responsibilities:
    - Keep a read-only snapshot of the medication set, mirrored in the
      durable store so a restart can re-arm without the caller
    - Arm one timer per (medication, instant) inside the horizon
    - Recompute on activation, on every medication set update and
      periodically, cancelling the previous armed set wholesale
    - Fire reminders and run snooze chains

    One instance per process; the host calls activate() on start and
    shutdown() on stop.
    """

    def __init__(
        self,
        store: DurableStore,
        surface: NotificationSurface,
        timer_backend: Optional[TimerBackend] = None,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None,
        generator: Optional[DoseOccurrenceGenerator] = None,
        horizon_hours: int = scheduler_config.HORIZON_HOURS,
        rearm_interval_hours: float = scheduler_config.REARM_INTERVAL_HOURS,
        snooze_minutes: int = scheduler_config.SNOOZE_MINUTES,
        max_snoozes: int = scheduler_config.MAX_SNOOZES
    ):
        self._store = store
        self._surface = surface
        self._timer_backend = timer_backend or AsyncioTimerBackend()
        self._tz = tz or get_local_timezone()
        self._clock = clock or partial(now, self._tz)
        self._generator = generator or occurrence_generator
        self._horizon = timedelta(hours=horizon_hours)
        self._rearm_interval_seconds = rearm_interval_hours * 3600
        self._snooze_seconds = snooze_minutes * 60
        self._max_snoozes = max_snoozes

        self._medications: List[Medication] = []
        self._timers: Dict[TimerKey, ArmedTimer] = {}
        self._chains: Dict[str, SnoozeChain] = {}
        self._permission: Optional[PermissionStatus] = None
        self._updates: asyncio.Queue = asyncio.Queue()
        self._tasks: List[asyncio.Task] = []
        self._active = False

        surface.set_action_handler(self.handle_action)

    # ---------- introspection ----------

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.SCHEDULED if self._timers else SchedulerState.IDLE

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def permission(self) -> Optional[PermissionStatus]:
        return self._permission

    @property
    def medications(self) -> List[Medication]:
        return list(self._medications)

    @property
    def armed_timers(self) -> List[ArmedTimer]:
        return sorted(self._timers.values(), key=lambda t: t.fire_at)

    @property
    def snooze_chains(self) -> List[SnoozeChain]:
        return list(self._chains.values())

    def get_chain(self, tag: str) -> Optional[SnoozeChain]:
        return self._chains.get(tag)

    # ---------- lifecycle ----------

    async def activate(self):
        """Reload the mirrored medication set, start background tasks and arm timers"""
        if self._active:
            return

        self._timer_backend.bind(asyncio.get_running_loop())
        self._permission = self._surface.request_permission()
        self._medications = self._load_mirror()
        self._active = True

        self._tasks = [
            asyncio.create_task(self._consume_updates(), name="scheduler-updates"),
            asyncio.create_task(self._periodic_rearm(), name="scheduler-rearm"),
        ]

        armed = self.recompute()
        logger.info(
            f"Notification scheduler activated with {len(self._medications)} medications, "
            f"{armed} timers armed"
        )

    async def shutdown(self):
        """Stop background tasks and cancel every timer"""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        self._cancel_timers()
        for chain in self._chains.values():
            chain.cancel()
        self._chains.clear()
        self._active = False
        logger.info("Notification scheduler stopped")

    # ---------- medication set updates ----------

    def notify_medication_set_changed(self, medications: Iterable[Medication]):
        """One-way message; consumed asynchronously by the update task"""
        self._updates.put_nowait(list(medications))

    async def flush_updates(self):
        """Wait until every queued medication set update has been applied"""
        await self._updates.join()

    async def _consume_updates(self):
        while True:
            medications = await self._updates.get()
            try:
                self.apply_medication_set(medications)
            except Exception as e:
                logger.error(f"Failed to apply medication set update: {e}", exc_info=True)
            finally:
                self._updates.task_done()

    async def _periodic_rearm(self):
        while True:
            await asyncio.sleep(self._rearm_interval_seconds)
            logger.info("Periodic re-arm of medication reminders")
            self.recompute()

    def apply_medication_set(self, medications: Iterable[Medication]) -> int:
        """Replace the snapshot, mirror it and recompute"""
        self._medications = list(medications)
        self._persist_mirror()
        return self.recompute()

    def _persist_mirror(self):
        try:
            self._store.set_json(
                StorageKeys.SCHEDULER_MIRROR,
                medications_to_list(self._medications)
            )
        except StorageError as e:
            # Arm from memory; a restart before the next successful write loses this set
            logger.warning(f"Could not persist scheduler medication set: {e}")

    def _load_mirror(self) -> List[Medication]:
        try:
            items = self._store.get_json(StorageKeys.SCHEDULER_MIRROR, default=[])
            return medications_from_list(items or [])
        except (StorageError, KeyError, ValueError, TypeError) as e:
            logger.error(f"Error loading scheduler medication set: {e}")
            return []

    # ---------- recompute ----------

    def recompute(self) -> int:
        """
        Fire what is already due, then re-arm every occurrence in (now, now + horizon]

        Returns:
            Number of armed timers
        """
        current = self._clock()
        self._fire_due(current)
        self._cancel_timers()
        self._prune_chains(current)

        try:
            self._ensure_permission()
        except PermissionDeniedError as e:
            logger.info(f"Reminders not scheduled: {e}")
            return 0

        horizon_end = current + self._horizon
        first_day = local_date_of(current, self._tz)
        last_day = local_date_of(horizon_end, self._tz)

        for day in days_between(first_day, last_day):
            for dose in self._generator.generate(self._medications, day, self._tz):
                if dose.is_as_needed:
                    continue
                try:
                    fire_at = parse_hhmm_on_date(dose.scheduled_time, day, self._tz)
                except InvalidRuleError as e:
                    logger.warning(f"Skipping dose of {dose.medication_id}: {e}")
                    continue
                if current < fire_at <= horizon_end:
                    self._arm(dose.medication_id, dose.medication_name, fire_at, current)

        logger.info(f"Scheduled {len(self._timers)} notifications")
        return len(self._timers)

    def _ensure_permission(self):
        if self._permission == PermissionStatus.GRANTED:
            return
        self._permission = self._surface.request_permission()
        if self._permission != PermissionStatus.GRANTED:
            raise PermissionDeniedError("notification permission not granted")

    def _arm(self, medication_id: str, medication_name: str, fire_at: datetime, current: datetime):
        timer = ArmedTimer(
            medication_id=medication_id,
            medication_name=medication_name,
            fire_at=fire_at
        )
        if timer.key in self._timers:
            return

        delay = fire_at.timestamp() - current.timestamp()
        if delay * 1000 > scheduler_config.MAX_TIMER_DELAY_MS:
            logger.warning(f"Not arming {medication_id} at {fire_at}: delay exceeds timer limit")
            return

        timer.handle = self._timer_backend.call_later(delay, partial(self._fire, timer.key))
        self._timers[timer.key] = timer

    def _fire_due(self, current: datetime):
        """Fire armed occurrences already due whose callback has not run yet"""
        known = {m.id for m in self._medications}
        for timer in list(self._timers.values()):
            if timer.fire_at <= current and timer.medication_id in known:
                timer.cancel()
                self._fire(timer.key)

    def _cancel_timers(self):
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    def _prune_chains(self, current: datetime):
        """Drop chains of removed medications and reminders left unanswered past the horizon"""
        known = {m.id for m in self._medications}
        stale_before = current - self._horizon
        for tag, chain in list(self._chains.items()):
            unanswered = (
                chain.state == SnoozeState.FIRED
                and chain.last_fired_at is not None
                and chain.last_fired_at < stale_before
            )
            if chain.medication_id not in known or unanswered:
                chain.cancel()
                del self._chains[tag]

    # ---------- firing & snoozing ----------

    def _fire(self, key: TimerKey):
        timer = self._timers.pop(key, None)
        if timer is None:
            return

        tag = make_tag(timer.medication_id, timer.fire_at)
        previous = self._chains.get(tag)
        if previous:
            previous.cancel()

        chain = SnoozeChain(
            tag=tag,
            medication_id=timer.medication_id,
            medication_name=timer.medication_name,
            occurrence_at=timer.fire_at,
            max_snoozes=self._max_snoozes,
            last_fired_at=self._clock()
        )
        self._chains[tag] = chain
        self._show(chain)

    def _fire_snoozed(self, tag: str):
        chain = self._chains.get(tag)
        if chain is None or not chain.refire(self._clock()):
            return
        self._show(chain)

    def _show(self, chain: SnoozeChain):
        title, body = format_reminder(chain.medication_name)
        actions = [NotificationAction.SNOOZE.value] if self._surface.supports_actions else []
        try:
            self._surface.show(title, body, chain.tag, actions)
        except Exception as e:
            logger.error(f"Failed to show notification {chain.tag}: {e}")

    def handle_action(self, tag: str, action: str) -> bool:
        """Entry point for user actions on a notification"""
        if action == NotificationAction.SNOOZE.value:
            return self.snooze(tag)

        chain = self._chains.pop(tag, None)
        if chain:
            chain.dismiss()
        return False

    def snooze(self, tag: str) -> bool:
        """
        Defer a fired reminder by the snooze period

        Returns:
            True if a snooze timer was armed
        """
        chain = self._chains.get(tag)
        if chain is None:
            logger.warning(f"Snooze requested for unknown notification {tag}")
            return False

        if not chain.snooze():
            if chain.state == SnoozeState.EXPIRED:
                logger.info(f"Snooze limit reached for {tag}, reminder expired")
                del self._chains[tag]
            else:
                logger.warning(f"Snooze ignored for {tag} in state {chain.state.value}")
            return False

        chain.handle = self._timer_backend.call_later(
            self._snooze_seconds,
            partial(self._fire_snoozed, tag)
        )
        logger.info(f"Reminder {tag} snoozed ({chain.snooze_count}/{chain.max_snoozes})")
        return True

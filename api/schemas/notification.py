"""
Notification Schemas
Pydantic models for reminders and scheduler status
"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel


class NotificationResponse(BaseModel):
    """A reminder shown by the in-app surface"""
    title: str
    body: str
    tag: str
    actions: List[str]
    shown_at: Optional[datetime] = None
    closed: bool


class ArmedTimerResponse(BaseModel):
    medication_id: str
    medication_name: str
    fire_at: datetime


class SnoozeChainResponse(BaseModel):
    tag: str
    medication_id: str
    medication_name: str
    occurrence_at: datetime
    snooze_count: int
    max_snoozes: int
    state: str


class SchedulerStatus(BaseModel):
    """Scheduler state and armed timers"""
    state: str
    active: bool
    permission: Optional[str] = None
    medication_count: int
    armed_timers: List[ArmedTimerResponse]
    snooze_chains: List[SnoozeChainResponse]


class ActionResult(BaseModel):
    tag: str
    action: str
    accepted: bool

"""
Notifications API Router
Endpoints for shown reminders, user actions and scheduler status
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, status

from actions.reminder_engine import NotificationScheduler
from api.deps import services
from api.schemas.notification import (
    ActionResult,
    ArmedTimerResponse,
    NotificationResponse,
    SchedulerStatus,
    SnoozeChainResponse,
)
from tools.notification_service import NotificationAction


router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=List[NotificationResponse])
async def list_notifications(
    include_closed: bool = Query(False, description="Include notifications already acted on"),
    surface=Depends(services.get_notification_surface)
):
    """
    Get reminders shown by the in-app surface
    """
    if not hasattr(surface, "get_notifications"):
        return []
    return [NotificationResponse(**n.to_dict()) for n in surface.get_notifications(include_closed)]


@router.get("/scheduler", response_model=SchedulerStatus)
async def get_scheduler_status(
    scheduler: NotificationScheduler = Depends(services.get_scheduler)
):
    """
    Get scheduler state, armed timers and open snooze chains
    """
    await scheduler.flush_updates()
    return SchedulerStatus(
        state=scheduler.state.value,
        active=scheduler.is_active,
        permission=scheduler.permission.value if scheduler.permission else None,
        medication_count=len(scheduler.medications),
        armed_timers=[ArmedTimerResponse(**t.to_dict()) for t in scheduler.armed_timers],
        snooze_chains=[SnoozeChainResponse(**c.to_dict()) for c in scheduler.snooze_chains]
    )


@router.post("/{tag}/actions/{action}", response_model=ActionResult)
async def notification_action(
    tag: str,
    action: str,
    surface=Depends(services.get_notification_surface)
):
    """
    Deliver a user action on a reminder

    - **snooze**: remind again in 15 minutes (at most 3 times)
    - **dismiss**: close the reminder
    """
    if action not in {a.value for a in NotificationAction}:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported action: {action}"
        )

    accepted = surface.trigger_action(tag, action)
    return ActionResult(tag=tag, action=action, accepted=bool(accepted))

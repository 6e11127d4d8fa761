"""
Notification Service Tool
Notification surface used by the reminder scheduler: permission, display
and user actions
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Any
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from config import settings
from tools.time_utils import now


logger = logging.getLogger(__name__)


class PermissionStatus(str, Enum):
    """Notification permission as answered by the user/environment"""
    GRANTED = "granted"
    DENIED = "denied"


class NotificationAction(str, Enum):
    """Actions a notification can offer"""
    SNOOZE = "snooze"
    DISMISS = "dismiss"


ActionHandler = Callable[[str, str], Any]


# Notification templates
NOTIFICATION_TEMPLATES: Dict[str, str] = {
    "title": "Medication time",
    "body": "It's time to take your {medication_name}.",
    "snooze_label": "Snooze 15 minutes",
}


@dataclass
class ShownNotification:
    """A notification handed to the surface"""
    title: str
    body: str
    tag: str
    actions: List[str] = field(default_factory=list)
    shown_at: Optional[datetime] = None
    closed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "body": self.body,
            "tag": self.tag,
            "actions": list(self.actions),
            "shown_at": self.shown_at.isoformat() if self.shown_at else None,
            "closed": self.closed
        }


class NotificationSurface(ABC):
    """Where reminders are displayed and where user actions come from"""

    def __init__(self):
        self._action_handler: Optional[ActionHandler] = None

    @abstractmethod
    def request_permission(self) -> PermissionStatus:
        """Ask for (or report) permission to show notifications"""

    @abstractmethod
    def show(self, title: str, body: str, tag: str, actions: List[str]) -> ShownNotification:
        """Display a notification"""

    @property
    def supports_actions(self) -> bool:
        return True

    def set_action_handler(self, handler: Optional[ActionHandler]):
        """Register the callback invoked as handler(tag, action)"""
        self._action_handler = handler

    def trigger_action(self, tag: str, action: str) -> Any:
        """Deliver a user action on a notification to the registered handler"""
        if self._action_handler is None:
            logger.warning(f"No action handler registered, dropping {action} on {tag}")
            return None
        return self._action_handler(tag, action)


class InAppNotificationSurface(NotificationSurface):
    """
    Keeps shown notifications in memory for the HTTP surface to list.
    Permission and action support come from settings unless given.
    """

    def __init__(
        self,
        permission_granted: Optional[bool] = None,
        actions_enabled: Optional[bool] = None,
        clock: Optional[Callable[[], datetime]] = None,
        max_kept: int = 200
    ):
        super().__init__()
        self._permission_granted = (
            settings.NOTIFICATIONS_ENABLED if permission_granted is None else permission_granted
        )
        self._actions_enabled = (
            settings.NOTIFICATION_ACTIONS_ENABLED if actions_enabled is None else actions_enabled
        )
        self._clock = clock or now
        self._max_kept = max_kept
        self._notifications: List[ShownNotification] = []

    @property
    def supports_actions(self) -> bool:
        return self._actions_enabled

    def set_permission(self, granted: bool):
        self._permission_granted = granted
        logger.info(f"Notification permission {'granted' if granted else 'revoked'}")

    def request_permission(self) -> PermissionStatus:
        if self._permission_granted:
            return PermissionStatus.GRANTED
        return PermissionStatus.DENIED

    def show(self, title: str, body: str, tag: str, actions: List[str]) -> ShownNotification:
        # A tag identifies one notification; re-showing replaces it
        self._notifications = [n for n in self._notifications if n.tag != tag]
        notification = ShownNotification(
            title=title,
            body=body,
            tag=tag,
            actions=list(actions) if self._actions_enabled else [],
            shown_at=self._clock()
        )
        self._notifications.append(notification)
        del self._notifications[:-self._max_kept]

        logger.info(f"[IN-APP] {title} - {body} ({tag})")
        return notification

    def get_notifications(self, include_closed: bool = False) -> List[ShownNotification]:
        return [n for n in self._notifications if include_closed or not n.closed]

    def get_notification(self, tag: str) -> Optional[ShownNotification]:
        return next((n for n in self._notifications if n.tag == tag), None)

    def trigger_action(self, tag: str, action: str) -> Any:
        notification = self.get_notification(tag)
        if notification:
            notification.closed = True
        return super().trigger_action(tag, action)


def format_reminder(medication_name: str) -> tuple:
    """Title and body for a medication reminder"""
    title = NOTIFICATION_TEMPLATES["title"]
    body = NOTIFICATION_TEMPLATES["body"].format(medication_name=medication_name)
    return title, body

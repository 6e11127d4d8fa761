"""
Tests for Notification Service Tool
Tests the in-app notification surface and reminder formatting
"""

import pytest
from unittest.mock import MagicMock

from tools.notification_service import (
    InAppNotificationSurface,
    NotificationAction,
    PermissionStatus,
    format_reminder,
)


# =============================================================================
# Test Reminder Formatting
# =============================================================================

class TestFormatReminder:
    """Tests for reminder title/body"""

    @pytest.mark.unit
    def test_body_names_medication(self):
        title, body = format_reminder("Metformin")

        assert title == "Medication time"
        assert "Metformin" in body


# =============================================================================
# Test In-App Surface
# =============================================================================

class TestInAppNotificationSurface:
    """Tests for InAppNotificationSurface"""

    @pytest.mark.unit
    def test_permission(self, clock):
        surface = InAppNotificationSurface(permission_granted=False, clock=clock)
        assert surface.request_permission() == PermissionStatus.DENIED

        surface.set_permission(True)
        assert surface.request_permission() == PermissionStatus.GRANTED

    @pytest.mark.unit
    def test_show_records_notification(self, surface, clock):
        notification = surface.show("Title", "Body", "medication-a-1", ["snooze"])

        assert notification.shown_at == clock()
        assert surface.get_notifications() == [notification]
        assert surface.get_notification("medication-a-1") is notification

    @pytest.mark.unit
    def test_same_tag_replaces(self, surface):
        surface.show("Title", "First", "medication-a-1", [])
        surface.show("Title", "Second", "medication-a-1", [])

        notifications = surface.get_notifications()
        assert len(notifications) == 1
        assert notifications[0].body == "Second"

    @pytest.mark.unit
    def test_actions_dropped_when_unsupported(self, clock):
        surface = InAppNotificationSurface(permission_granted=True, actions_enabled=False, clock=clock)

        notification = surface.show("Title", "Body", "tag", [NotificationAction.SNOOZE.value])

        assert not surface.supports_actions
        assert notification.actions == []

    @pytest.mark.unit
    def test_keeps_bounded_number(self, clock):
        surface = InAppNotificationSurface(permission_granted=True, clock=clock, max_kept=3)

        for i in range(5):
            surface.show("Title", "Body", f"tag-{i}", [])

        assert [n.tag for n in surface.get_notifications()] == ["tag-2", "tag-3", "tag-4"]

    @pytest.mark.unit
    def test_trigger_action_calls_handler_and_closes(self, surface):
        handler = MagicMock(return_value=True)
        surface.set_action_handler(handler)
        surface.show("Title", "Body", "tag", ["snooze"])

        result = surface.trigger_action("tag", "snooze")

        assert result is True
        handler.assert_called_once_with("tag", "snooze")
        assert surface.get_notifications() == []
        assert len(surface.get_notifications(include_closed=True)) == 1

    @pytest.mark.unit
    def test_trigger_action_without_handler(self, surface):
        surface.show("Title", "Body", "tag", [])
        assert surface.trigger_action("tag", "dismiss") is None

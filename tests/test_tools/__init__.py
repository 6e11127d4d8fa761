"""
Test Tools Package
Tests for the tools module (time utilities, dose generator, reconciler, notifications)
"""

__all__ = [
    "test_time_utils",
    "test_scheduler",
    "test_reconciler",
    "test_notification_service",
]

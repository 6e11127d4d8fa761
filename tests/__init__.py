"""
DoseKeeper Test Suite
=====================

This package contains all tests for the DoseKeeper medication reminder service.

Test Structure:
- test_tools/: time handling, dose generation, reconciliation, notification surface
- test_actions/: background reminder scheduler
- test_services/: store, medication, history and daily dose services
- test_api/: API endpoint tests for FastAPI routes
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_actions/

    # Run only marked tests
    pytest -m "unit"
    pytest -m "api"
"""

# Common test data
SAMPLE_FREQUENCIES = [
    {"kind": "fixed_times", "times": ["08:00", "20:00"]},
    {"kind": "interval_hours", "interval_hours": 8, "first_dose_time": "06:00"},
    {"kind": "as_needed"},
]

__all__ = [
    "SAMPLE_FREQUENCIES",
]

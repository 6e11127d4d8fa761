"""
Tests for Medications API
==========================

Tests medication CRUD operations and dosing rule validation.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from tests import SAMPLE_FREQUENCIES


BASE = "/api/v1/medications/"


# ==================== FIXTURES ====================

@pytest.fixture
def medication_create_data():
    """Sample data for creating a medication"""
    return {
        "name": "Metformin",
        "frequency": {"kind": "fixed_times", "times": ["08:00", "20:00"]},
        "start_date": "2024-01-01"
    }


@pytest.fixture
def created_medication(client: TestClient, medication_create_data):
    response = client.post(BASE, json=medication_create_data)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


# ==================== CREATE TESTS ====================

class TestCreateMedication:
    """Tests for medication creation endpoint"""

    @pytest.mark.api
    def test_create_medication_success(self, client: TestClient, medication_create_data):
        """Test successful medication creation"""
        response = client.post(BASE, json=medication_create_data)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["id"]
        assert data["name"] == "Metformin"
        assert data["frequency"] == {"kind": "fixed_times", "times": ["08:00", "20:00"]}
        assert data["start_date"] == "2024-01-01"
        assert data["end_date"] is None

    @pytest.mark.api
    def test_create_interval_medication(self, client: TestClient):
        """Test interval rule creation"""
        response = client.post(BASE, json={
            "name": "Amoxicillin",
            "frequency": {"kind": "interval_hours", "interval_hours": 8, "first_dose_time": "06:00"},
            "end_date": "2024-01-07"
        })

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["frequency"]["interval_hours"] == 8
        assert data["start_date"] == "2024-01-01"
        assert data["end_date"] == "2024-01-07"

    @pytest.mark.api
    def test_create_interval_longer_than_a_day(self, client: TestClient):
        """Test intervals above 24 hours are accepted"""
        response = client.post(BASE, json={
            "name": "Weekly Shot",
            "frequency": {"kind": "interval_hours", "interval_hours": 36, "first_dose_time": "08:00"}
        })

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["frequency"]["interval_hours"] == 36

        doses = client.get("/api/v1/doses/").json()
        assert [d["scheduled_time"] for d in doses["scheduled"]] == ["08:00"]

    @pytest.mark.api
    def test_create_as_needed_medication(self, client: TestClient):
        """Test as-needed rule creation"""
        response = client.post(BASE, json={"name": "Ibuprofen", "frequency": {"kind": "as_needed"}})

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["frequency"] == {"kind": "as_needed"}

    @pytest.mark.api
    @pytest.mark.parametrize("frequency", SAMPLE_FREQUENCIES)
    def test_create_each_rule_kind(self, client: TestClient, frequency):
        """Test every rule kind round-trips through the API"""
        response = client.post(BASE, json={"name": "Sample", "frequency": frequency})

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["frequency"] == frequency

    @pytest.mark.api
    @pytest.mark.parametrize("frequency", [
        {"kind": "fixed_times", "times": ["8:00"]},
        {"kind": "fixed_times", "times": ["24:00"]},
        {"kind": "fixed_times", "times": []},
        {"kind": "interval_hours", "interval_hours": 0, "first_dose_time": "06:00"},
        {"kind": "interval_hours", "interval_hours": 8},
        {"kind": "weekly"},
    ])
    def test_create_invalid_rule(self, client: TestClient, frequency):
        """Test malformed rules are rejected"""
        response = client.post(BASE, json={"name": "Bad", "frequency": frequency})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.api
    def test_create_end_before_start(self, client: TestClient, medication_create_data):
        """Test date range validation"""
        medication_create_data["end_date"] = "2023-12-31"

        response = client.post(BASE, json=medication_create_data)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.api
    def test_create_missing_name(self, client: TestClient):
        response = client.post(BASE, json={"frequency": {"kind": "as_needed"}})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# ==================== READ TESTS ====================

class TestReadMedication:
    """Tests for listing and fetching medications"""

    @pytest.mark.api
    def test_list_empty(self, client: TestClient):
        response = client.get(BASE)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"medications": [], "total": 0}

    @pytest.mark.api
    def test_list_in_insertion_order(self, client: TestClient, created_medication):
        client.post(BASE, json={"name": "Ibuprofen", "frequency": {"kind": "as_needed"}})

        data = client.get(BASE).json()

        assert data["total"] == 2
        assert [m["name"] for m in data["medications"]] == ["Metformin", "Ibuprofen"]

    @pytest.mark.api
    def test_get_medication(self, client: TestClient, created_medication):
        response = client.get(f"{BASE}{created_medication['id']}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == created_medication

    @pytest.mark.api
    def test_get_missing_medication(self, client: TestClient):
        response = client.get(f"{BASE}missing")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        data = response.json()
        assert data["error"] is True
        assert data["status_code"] == 404
        assert "missing" in data["message"]


# ==================== UPDATE / DELETE TESTS ====================

class TestUpdateMedication:
    """Tests for replacing and removing medications"""

    @pytest.mark.api
    def test_update_medication(self, client: TestClient, created_medication):
        response = client.put(f"{BASE}{created_medication['id']}", json={
            "name": "Metformin XR",
            "frequency": {"kind": "fixed_times", "times": ["09:00"]},
            "start_date": "2024-01-01"
        })

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] == created_medication["id"]
        assert data["name"] == "Metformin XR"
        assert data["frequency"]["times"] == ["09:00"]

    @pytest.mark.api
    def test_update_missing_medication(self, client: TestClient):
        response = client.put(f"{BASE}missing", json={
            "name": "X",
            "frequency": {"kind": "as_needed"},
            "start_date": "2024-01-01"
        })

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.api
    def test_delete_medication(self, client: TestClient, created_medication):
        response = client.delete(f"{BASE}{created_medication['id']}")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get(BASE).json()["total"] == 0

    @pytest.mark.api
    def test_delete_missing_medication(self, client: TestClient):
        response = client.delete(f"{BASE}missing")

        assert response.status_code == status.HTTP_404_NOT_FOUND

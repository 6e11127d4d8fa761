"""
Medications API Router
Endpoints for medication management
"""

from fastapi import APIRouter, Depends, Response, status

from api.deps import services
from api.schemas.medication import (
    MedicationCreate,
    MedicationUpdate,
    MedicationResponse,
    MedicationList,
)
from services.medication_service import MedicationService


router = APIRouter(prefix="/medications", tags=["medications"])


@router.get("/", response_model=MedicationList)
async def list_medications(
    medication_service: MedicationService = Depends(services.get_medication_service)
):
    """
    Get all medications
    """
    medications = await medication_service.list_medications()
    return MedicationList(
        medications=[MedicationResponse.from_domain(m) for m in medications],
        total=len(medications)
    )


@router.post("/", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def create_medication(
    medication_data: MedicationCreate,
    medication_service: MedicationService = Depends(services.get_medication_service)
):
    """
    Add a new medication

    - **name**: Medication name
    - **frequency**: `fixed_times` (times), `interval_hours`
      (interval_hours, first_dose_time) or `as_needed`
    - **start_date**: First day (default: today)
    - **end_date**: Last day, inclusive
    """
    medication = await medication_service.add_medication(
        name=medication_data.name,
        frequency=medication_data.frequency.to_domain(),
        start_date=medication_data.start_date,
        end_date=medication_data.end_date
    )
    return MedicationResponse.from_domain(medication)


@router.get("/{medication_id}", response_model=MedicationResponse)
async def get_medication(
    medication_id: str,
    medication_service: MedicationService = Depends(services.get_medication_service)
):
    """
    Get medication details
    """
    medication = await medication_service.get_medication(medication_id)
    return MedicationResponse.from_domain(medication)


@router.put("/{medication_id}", response_model=MedicationResponse)
async def update_medication(
    medication_id: str,
    medication_data: MedicationUpdate,
    medication_service: MedicationService = Depends(services.get_medication_service)
):
    """
    Replace a medication's name, rule and date range
    """
    medication = await medication_service.update_medication(
        medication_data.to_domain(medication_id)
    )
    return MedicationResponse.from_domain(medication)


@router.delete("/{medication_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_medication(
    medication_id: str,
    medication_service: MedicationService = Depends(services.get_medication_service)
):
    """
    Remove a medication. Its history entries are kept.
    """
    await medication_service.remove_medication(medication_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

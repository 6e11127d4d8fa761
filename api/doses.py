"""
Doses API Router
Endpoints for the daily dose view and recording taken doses
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, status

from api.deps import services
from api.schemas.dose import DailyDoses, DoseResponse, HistoryEntryResponse, TakeDoseRequest
from services.dose_service import DoseService
from services.history_service import HistoryService


router = APIRouter(prefix="/doses", tags=["doses"])


@router.get("/", response_model=DailyDoses)
async def get_daily_doses(
    target_date: Optional[date] = Query(None, alias="date", description="Day (default: today)"),
    dose_service: DoseService = Depends(services.get_dose_service),
    tz=Depends(services.get_timezone)
):
    """
    Get the doses of a day with their taken status
    """
    doses = await dose_service.get_daily_doses(target_date)
    scheduled, as_needed = dose_service.split_scheduled(doses)

    return DailyDoses(
        target_date=target_date or dose_service.today(),
        scheduled=[DoseResponse.from_domain(d, tz) for d in scheduled],
        as_needed=[DoseResponse.from_domain(d, tz) for d in as_needed],
        total_scheduled=len(scheduled),
        taken_count=sum(1 for d in scheduled if d.is_taken)
    )


@router.post("/take", response_model=HistoryEntryResponse, status_code=status.HTTP_201_CREATED)
async def take_dose(
    request: TakeDoseRequest,
    history_service: HistoryService = Depends(services.get_history_service),
    tz=Depends(services.get_timezone)
):
    """
    Record a dose as taken now

    - **scheduled_time**: slot being satisfied ("HH:MM" or "Livre")
    - **recalculate_next_dose**: for interval medications, restart the
      interval from now
    """
    entry = await history_service.take_dose(
        request.medication_id,
        request.scheduled_time,
        recalculate_next_dose=request.recalculate_next_dose
    )
    return HistoryEntryResponse.from_domain(entry, tz)

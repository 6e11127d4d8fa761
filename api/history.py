"""
History API Router
Endpoints for the taken-dose log
"""

from fastapi import APIRouter, Depends, Response, status

from api.deps import services
from api.schemas.dose import HistoryEntryResponse, HistoryList
from services.history_service import HistoryService


router = APIRouter(prefix="/history", tags=["history"])


@router.get("/", response_model=HistoryList)
async def list_history(
    history_service: HistoryService = Depends(services.get_history_service),
    tz=Depends(services.get_timezone)
):
    """
    Get the taken-dose log, newest first
    """
    entries = await history_service.list_history()
    return HistoryList(
        entries=[HistoryEntryResponse.from_domain(e, tz) for e in entries],
        total=len(entries)
    )


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_history_entry(
    entry_id: str,
    history_service: HistoryService = Depends(services.get_history_service)
):
    """
    Delete a history entry. Unknown IDs are ignored.
    """
    await history_service.delete_entry(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

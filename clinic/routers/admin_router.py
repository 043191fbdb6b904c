from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, HTTPException
import logging
from datetime import date

from ..application.ports.user_repo import CurrentUser
from ..application.services.statistics_service import StatisticsService
from ..application.services.reminder_service import ReminderService
from ..schemas.common.common import CountResponse
from ..security import require_admin
from .deps import get_statistics_service, get_reminder_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/statistics")
def dashboard(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: CurrentUser = Depends(require_admin),
    statistics: StatisticsService = Depends(get_statistics_service),
) -> Dict[str, Any]:
    try:
        return statistics.dashboard(start_date, end_date)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error building statistics: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to build statistics")


@router.post("/reminders/run", response_model=CountResponse)
def run_reminders(
    hours_before: Optional[int] = None,
    current_user: CurrentUser = Depends(require_admin),
    reminders: ReminderService = Depends(get_reminder_service),
):
    try:
        sent = reminders.send_due_reminders(hours_before) if hours_before else reminders.send_due_reminders()
        return CountResponse(count=sent)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error sending reminders: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to send reminders")

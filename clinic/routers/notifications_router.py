from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..application.ports.user_repo import CurrentUser
from ..application.services.notification_service import NotificationService
from ..schemas.common.common import CountResponse, MessageResponse
from ..schemas.notifications.notification import NotificationResponse
from ..security import get_current_user
from .deps import get_notification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=List[NotificationResponse])
def list_notifications(
    type: Optional[str] = None,
    read: Optional[bool] = None,
    limit: int = Query(default=50),
    offset: int = Query(default=0),
    current_user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    try:
        items = notifications.list_for_user(current_user.id, type=type, read=read, limit=limit, offset=offset)
        return [NotificationResponse.model_validate(n) for n in items]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving notifications: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve notifications")


@router.get("/unread-count", response_model=CountResponse)
def unread_count(
    current_user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    return CountResponse(count=notifications.unread_count(current_user.id))


@router.put("/read-all", response_model=CountResponse)
def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    return CountResponse(count=notifications.mark_all_read(current_user.id))


@router.get("/{notification_id}", response_model=NotificationResponse)
def read_notification(
    notification_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    return NotificationResponse.model_validate(notifications.read(current_user.id, notification_id))


@router.put("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    return NotificationResponse.model_validate(notifications.read(current_user.id, notification_id))


@router.delete("/{notification_id}", response_model=MessageResponse)
def delete_notification(
    notification_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    notifications.delete(current_user.id, notification_id)
    return MessageResponse(message="Notification deleted")

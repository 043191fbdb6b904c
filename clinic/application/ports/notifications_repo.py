from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from datetime import datetime


@dataclass
class NotificationDto:
    id: int
    user_id: str
    type: str
    title: str
    message: str
    read: bool
    data: Optional[Dict[str, Any]]
    created_at: datetime


class NotificationsRepository:
    def create(self, user_id: str, type: str, title: str, message: str, data: Optional[Dict[str, Any]] = None) -> NotificationDto:
        ...

    def list_for_user(self, user_id: str, type: Optional[str] = None, read: Optional[bool] = None, limit: int = 50, offset: int = 0) -> List[NotificationDto]:
        ...

    def get_for_user(self, notification_id: int, user_id: str) -> Optional[NotificationDto]:
        ...

    def mark_read(self, notification_id: int) -> None:
        ...

    def mark_all_read(self, user_id: str) -> int:
        ...

    def delete(self, notification_id: int) -> None:
        ...

    def unread_count(self, user_id: str) -> int:
        ...

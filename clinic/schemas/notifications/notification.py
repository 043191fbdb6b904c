# clinic/schemas/notifications/notification.py
from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, Optional
from datetime import datetime


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    title: str
    message: str
    read: bool
    data: Optional[Dict[str, Any]] = None
    created_at: datetime

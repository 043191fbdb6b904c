import json
from typing import Any, Dict, List, Optional
from sqlmodel import Session, select, func

from .....db.models import Notification
from .....application.ports.notifications_repo import NotificationsRepository, NotificationDto


class SqlNotificationsRepository(NotificationsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, n: Notification) -> NotificationDto:
        return NotificationDto(
            id=n.id,
            user_id=n.user_id,
            type=n.type,
            title=n.title,
            message=n.message,
            read=bool(n.read),
            data=json.loads(n.data) if n.data else None,
            created_at=n.created_at,
        )

    def create(self, user_id: str, type: str, title: str, message: str, data: Optional[Dict[str, Any]] = None) -> NotificationDto:
        n = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            data=json.dumps(data) if data is not None else None,
        )
        self.session.add(n)
        self.session.commit()
        self.session.refresh(n)
        return self._to_dto(n)

    def list_for_user(self, user_id: str, type: Optional[str] = None, read: Optional[bool] = None, limit: int = 50, offset: int = 0) -> List[NotificationDto]:
        query = select(Notification).where(Notification.user_id == user_id)
        if type:
            query = query.where(Notification.type == type)
        if read is not None:
            query = query.where(Notification.read == read)
        rows = self.session.exec(
            query.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(offset).limit(limit)
        ).all()
        return [self._to_dto(n) for n in rows]

    def get_for_user(self, notification_id: int, user_id: str) -> Optional[NotificationDto]:
        n = self.session.exec(
            select(Notification).where(Notification.id == notification_id).where(Notification.user_id == user_id)
        ).first()
        return self._to_dto(n) if n else None

    def mark_read(self, notification_id: int) -> None:
        n = self.session.get(Notification, notification_id)
        if not n:
            return
        n.read = True
        self.session.add(n)
        self.session.commit()

    def mark_all_read(self, user_id: str) -> int:
        rows = self.session.exec(
            select(Notification).where(Notification.user_id == user_id).where(Notification.read == False)  # noqa: E712
        ).all()
        for n in rows:
            n.read = True
            self.session.add(n)
        self.session.commit()
        return len(rows)

    def delete(self, notification_id: int) -> None:
        n = self.session.get(Notification, notification_id)
        if not n:
            return
        self.session.delete(n)
        self.session.commit()

    def unread_count(self, user_id: str) -> int:
        return self.session.exec(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id)
            .where(Notification.read == False)  # noqa: E712
        ).one()

from typing import List, Optional
from sqlmodel import Session, select, func

from .....db.models import User
from .....application.ports.user_repo import UserRepository, UserDto


class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, u: User) -> UserDto:
        return UserDto(
            id=u.id,
            name=u.name,
            email=u.email,
            phone=u.phone,
            role=u.role,
            is_active=u.is_active,
            created_at=u.created_at,
        )

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        u = self.session.get(User, user_id)
        return self._to_dto(u) if u else None

    def count_by_role(self, role: str) -> int:
        return self.session.exec(select(func.count()).select_from(User).where(User.role == role)).one()

    def list_ids_by_role(self, role: str) -> List[str]:
        return list(self.session.exec(
            select(User.id).where(User.role == role).where(User.is_active == True)  # noqa: E712
        ).all())

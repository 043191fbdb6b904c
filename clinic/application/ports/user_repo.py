from dataclasses import dataclass
from typing import List, Protocol, Optional
from datetime import datetime


@dataclass
class UserDto:
    id: str
    name: str
    email: Optional[str]
    phone: Optional[str]
    role: str
    is_active: bool
    created_at: datetime


@dataclass
class CurrentUser:
    id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_doctor(self) -> bool:
        return self.role == "doctor"


class UserRepository(Protocol):
    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def count_by_role(self, role: str) -> int:
        ...

    def list_ids_by_role(self, role: str) -> List[str]:
        ...

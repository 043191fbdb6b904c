from dataclasses import dataclass, field
from typing import Dict, List, Optional
from datetime import datetime


@dataclass
class WorkingDayDto:
    start: str
    end: str
    lunch_start: str
    lunch_end: str


@dataclass
class DoctorDto:
    id: int
    user_id: Optional[str]
    first_name: str
    last_name: str
    speciality: str
    email: Optional[str]
    is_available: bool
    created_at: datetime
    service_ids: List[int] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class DoctorsRepository:
    def get(self, doctor_id: int) -> Optional[DoctorDto]:
        ...

    def get_by_user(self, user_id: str) -> Optional[DoctorDto]:
        ...

    def list(self, speciality: Optional[str] = None, available: Optional[bool] = None) -> List[DoctorDto]:
        ...

    def search(self, query: str) -> List[DoctorDto]:
        ...

    def create(self, user_id: Optional[str], first_name: str, last_name: str, speciality: str, email: Optional[str]) -> DoctorDto:
        ...

    def update(self, doctor_id: int, **fields) -> Optional[DoctorDto]:
        ...

    def count(self) -> int:
        ...

    def get_working_hours(self, doctor_id: int) -> Dict[str, WorkingDayDto]:
        ...

    def replace_working_hours(self, doctor_id: int, hours: Dict[str, WorkingDayDto]) -> None:
        ...

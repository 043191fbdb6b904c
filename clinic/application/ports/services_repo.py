from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class MedicalServiceDto:
    id: int
    name: str
    slug: str
    description: str
    duration: int
    price: float
    category: Optional[str]
    is_active: bool
    doctor_ids: List[int] = field(default_factory=list)


class MedicalServicesRepository:
    def get(self, service_id: int) -> Optional[MedicalServiceDto]:
        ...

    def get_by_name(self, name: str) -> Optional[MedicalServiceDto]:
        ...

    def list(self, active: Optional[bool] = None, category: Optional[str] = None, doctor_id: Optional[int] = None) -> List[MedicalServiceDto]:
        ...

    def search(self, query: str) -> List[MedicalServiceDto]:
        ...

    def create(self, name: str, slug: str, description: str, duration: int, price: float, category: Optional[str]) -> MedicalServiceDto:
        ...

    def update(self, service_id: int, **fields) -> MedicalServiceDto:
        ...

    def delete(self, service_id: int) -> None:
        ...

    def add_doctor(self, service_id: int, doctor_id: int) -> None:
        ...

    def remove_doctor(self, service_id: int, doctor_id: int) -> None:
        ...

    def count_by_category(self) -> Dict[str, int]:
        ...

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from fastapi import HTTPException

from ..ports.services_repo import MedicalServicesRepository, MedicalServiceDto
from ..ports.doctors_repo import DoctorsRepository
from ..ports.appointments_repo import AppointmentsRepository

logger = logging.getLogger(__name__)


def slugify(value: str) -> str:
    value = re.sub(r"[^a-z0-9]+", "-", value.lower())
    return value.strip("-")


@dataclass
class MedicalServiceManager:
    repo: MedicalServicesRepository
    doctors: DoctorsRepository
    appointments: AppointmentsRepository

    def _get(self, service_id: int) -> MedicalServiceDto:
        service = self.repo.get(service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def _validate(self, name: Optional[str], duration: Optional[int], price: Optional[float]) -> None:
        if name is not None and not name.strip():
            raise HTTPException(status_code=400, detail="Service name is required")
        if duration is not None and duration <= 0:
            raise HTTPException(status_code=400, detail="Duration must be positive")
        if price is not None and price < 0:
            raise HTTPException(status_code=400, detail="Price cannot be negative")

    def create(self, name: str, description: str = "", duration: int = 30, price: float = 0.0,
               category: Optional[str] = None, doctor_ids: Optional[List[int]] = None) -> MedicalServiceDto:
        self._validate(name, duration, price)
        name = name.strip()
        if self.repo.get_by_name(name):
            raise HTTPException(status_code=400, detail="A service with this name already exists")

        service = self.repo.create(name, slugify(name), description, duration, price, category)
        for doctor_id in doctor_ids or []:
            self.assign_doctor(service.id, doctor_id)
        logger.info(f"Service '{name}' created")
        return self._get(service.id)

    def update(self, service_id: int, **fields) -> MedicalServiceDto:
        service = self._get(service_id)
        changes = {k: v for k, v in fields.items() if v is not None}
        self._validate(changes.get("name"), changes.get("duration"), changes.get("price"))
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            existing = self.repo.get_by_name(changes["name"])
            if existing and existing.id != service.id:
                raise HTTPException(status_code=400, detail="A service with this name already exists")
            changes["slug"] = slugify(changes["name"])
        return self.repo.update(service_id, **changes)

    def delete(self, service_id: int) -> None:
        self._get(service_id)
        if self.appointments.count_for_service(service_id) > 0:
            raise HTTPException(status_code=400, detail="Cannot delete a service with existing appointments")
        self.repo.delete(service_id)
        logger.info(f"Service {service_id} deleted")

    def toggle_active(self, service_id: int) -> MedicalServiceDto:
        service = self._get(service_id)
        return self.repo.update(service_id, is_active=not service.is_active)

    def assign_doctor(self, service_id: int, doctor_id: int) -> MedicalServiceDto:
        service = self._get(service_id)
        if not self.doctors.get(doctor_id):
            raise HTTPException(status_code=404, detail="Doctor not found")
        if doctor_id not in service.doctor_ids:
            self.repo.add_doctor(service_id, doctor_id)
        return self._get(service_id)

    def remove_doctor(self, service_id: int, doctor_id: int) -> MedicalServiceDto:
        service = self._get(service_id)
        if doctor_id not in service.doctor_ids:
            raise HTTPException(status_code=404, detail="Doctor is not assigned to this service")
        self.repo.remove_doctor(service_id, doctor_id)
        return self._get(service_id)

    def get(self, service_id: int) -> MedicalServiceDto:
        return self._get(service_id)

    def list_active(self) -> List[MedicalServiceDto]:
        return self.repo.list(active=True)

    def list_by_category(self, category: str) -> List[MedicalServiceDto]:
        return self.repo.list(active=True, category=category)

    def list_by_doctor(self, doctor_id: int) -> List[MedicalServiceDto]:
        if not self.doctors.get(doctor_id):
            raise HTTPException(status_code=404, detail="Doctor not found")
        return self.repo.list(active=True, doctor_id=doctor_id)

    def search(self, query: str) -> List[MedicalServiceDto]:
        return self.repo.search((query or "").strip())

    def statistics(self) -> Dict[str, Any]:
        services = self.repo.list()
        active = [s for s in services if s.is_active]
        average_price = round(sum(s.price for s in services) / len(services), 2) if services else 0.0
        return {
            "total": len(services),
            "active": len(active),
            "inactive": len(services) - len(active),
            "average_price": average_price,
            "by_category": self.repo.count_by_category(),
        }

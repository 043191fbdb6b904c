import logging
from dataclasses import dataclass
from typing import List, Optional
from fastapi import HTTPException

from ..ports.doctors_repo import DoctorsRepository, DoctorDto
from ..ports.user_repo import CurrentUser
from .calendar_service import CalendarService

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("first_name", "last_name", "speciality", "email", "is_available", "user_id")


@dataclass
class DoctorService:
    repo: DoctorsRepository
    calendar: CalendarService

    def create(self, first_name: str, last_name: str, speciality: str, email: Optional[str] = None,
               user_id: Optional[str] = None) -> DoctorDto:
        if not first_name.strip() or not last_name.strip():
            raise HTTPException(status_code=400, detail="Doctor name is required")
        if user_id and self.repo.get_by_user(user_id):
            raise HTTPException(status_code=400, detail="This account is already linked to a doctor")
        doctor = self.repo.create(user_id, first_name.strip(), last_name.strip(), speciality, email)
        self.calendar.seed_default_hours(doctor.id)
        logger.info(f"Doctor {doctor.id} created")
        return doctor

    def get(self, doctor_id: int) -> DoctorDto:
        doctor = self.repo.get(doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        return doctor

    def list(self, speciality: Optional[str] = None, available: Optional[bool] = None) -> List[DoctorDto]:
        return self.repo.list(speciality=speciality, available=available)

    def search(self, query: str) -> List[DoctorDto]:
        query = (query or "").strip()
        if len(query) < 2:
            raise HTTPException(status_code=400, detail="Search query must be at least 2 characters")
        return self.repo.search(query)

    def update(self, doctor_id: int, **fields) -> DoctorDto:
        self.get(doctor_id)
        changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
        return self.repo.update(doctor_id, **changes)

    def toggle_availability(self, doctor_id: int) -> DoctorDto:
        doctor = self.get(doctor_id)
        doctor = self.repo.update(doctor_id, is_available=not doctor.is_available)
        logger.info(f"Doctor {doctor_id} availability set to {doctor.is_available}")
        return doctor

    def ensure_can_manage(self, user: CurrentUser, doctor_id: int) -> DoctorDto:
        """Calendar changes are limited to the doctor and admins."""
        doctor = self.get(doctor_id)
        if not (user.is_admin or (user.is_doctor and doctor.user_id == user.id)):
            raise HTTPException(status_code=403, detail="Not allowed to manage this doctor's calendar")
        return doctor

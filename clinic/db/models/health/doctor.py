# clinic/db/models/health/doctor.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime

from .medical_service import DoctorServiceLink

class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)
    first_name: str
    last_name: str
    speciality: str = Field(index=True)
    email: Optional[str] = None
    is_available: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.now)

    # Relationships
    appointments: List["Appointment"] = Relationship(back_populates="doctor")
    working_hours: List["WorkingHours"] = Relationship(back_populates="doctor")
    services: List["MedicalService"] = Relationship(back_populates="doctors", link_model=DoctorServiceLink)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

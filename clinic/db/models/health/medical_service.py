# clinic/db/models/health/medical_service.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime

class DoctorServiceLink(SQLModel, table=True):
    __tablename__ = "doctor_services"
    doctor_id: Optional[int] = Field(default=None, foreign_key="doctors.id", primary_key=True)
    service_id: Optional[int] = Field(default=None, foreign_key="services.id", primary_key=True)

class MedicalService(SQLModel, table=True):
    __tablename__ = "services"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)
    slug: str = Field(index=True)
    description: str = ""
    duration: int = Field(default=30)  # minutes
    price: float = Field(default=0.0)
    category: Optional[str] = Field(default=None, index=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.now)

    # Relationships
    doctors: List["Doctor"] = Relationship(back_populates="services", link_model=DoctorServiceLink)

# clinic/db/models/records/medical_record.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class MedicalRecord(SQLModel, table=True):
    __tablename__ = "medical_records"
    id: Optional[int] = Field(default=None, primary_key=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: Optional[str] = Field(default=None, foreign_key="users.id")
    type: str = Field(index=True)
    title: str
    description: str = ""
    date: datetime = Field(default_factory=datetime.now)
    extra: Optional[str] = None  # JSON metadata
    created_at: datetime = Field(default_factory=datetime.now)

class MedicalNote(SQLModel, table=True):
    __tablename__ = "medical_notes"
    id: Optional[int] = Field(default=None, primary_key=True)
    record_id: int = Field(foreign_key="medical_records.id", index=True)
    doctor_id: Optional[str] = Field(default=None, foreign_key="users.id")
    content: str
    extra: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

class Prescription(SQLModel, table=True):
    __tablename__ = "prescriptions"
    id: Optional[int] = Field(default=None, primary_key=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: Optional[str] = Field(default=None, foreign_key="users.id")
    medications: str  # JSON list
    instructions: str = ""
    start_date: datetime
    end_date: datetime
    extra: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

# clinic/schemas/records/medical_record.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


class MedicalRecordCreate(BaseModel):
    patient_id: str
    type: str
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    date: Optional[datetime] = None
    metadata: Dict[str, Any] = {}


class MedicalNoteCreate(BaseModel):
    content: str = Field(min_length=1)
    metadata: Dict[str, Any] = {}


class PrescriptionCreate(BaseModel):
    patient_id: str
    medications: List[str]
    instructions: str = ""
    start_date: datetime
    end_date: datetime
    metadata: Dict[str, Any] = {}


class MedicalRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: str
    doctor_id: Optional[str] = None
    type: str
    title: str
    description: str
    date: datetime
    metadata: Dict[str, Any] = {}


class MedicalNoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    record_id: int
    doctor_id: Optional[str] = None
    content: str
    metadata: Dict[str, Any] = {}
    created_at: datetime


class PrescriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: str
    doctor_id: Optional[str] = None
    medications: List[str]
    instructions: str
    start_date: datetime
    end_date: datetime
    metadata: Dict[str, Any] = {}


class MedicalSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    allergies: List[MedicalRecordResponse]
    chronic_conditions: List[MedicalRecordResponse]
    current_medications: List[PrescriptionResponse]
    recent_consultations: List[MedicalRecordResponse]
    vaccinations: List[MedicalRecordResponse]
    latest_vital_signs: Optional[MedicalRecordResponse] = None


class MedicalHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    records: List[MedicalRecordResponse]
    prescriptions: List[PrescriptionResponse]
    summary: MedicalSummaryResponse

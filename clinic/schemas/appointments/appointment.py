# clinic/schemas/appointments/appointment.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class AppointmentCreate(BaseModel):
    doctor_id: int
    service_id: int
    start_time: datetime
    reason: Optional[str] = Field(default=None, max_length=500)


class AppointmentCancel(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class AppointmentReschedule(BaseModel):
    start_time: datetime


class AppointmentComplete(BaseModel):
    notes: Optional[str] = None


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: str
    doctor_id: int
    service_id: int
    start_time: datetime
    end_time: datetime
    duration: int
    status: str
    reason: Optional[str] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime

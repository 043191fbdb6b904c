# clinic/schemas/doctors/doctor.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional
from datetime import date, datetime


class DoctorCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    speciality: str = Field(min_length=1, max_length=100)
    email: Optional[str] = None
    user_id: Optional[str] = None


class DoctorUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    speciality: Optional[str] = None
    email: Optional[str] = None
    is_available: Optional[bool] = None
    user_id: Optional[str] = None


class DoctorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[str] = None
    first_name: str
    last_name: str
    full_name: str
    speciality: str
    email: Optional[str] = None
    is_available: bool
    service_ids: List[int] = []


class WorkingDay(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start: str
    end: str
    lunch_start: str
    lunch_end: str


class WorkingHoursRequest(BaseModel):
    hours: Dict[str, WorkingDay]


class WorkingHoursResponse(BaseModel):
    doctor_id: int
    hours: Dict[str, WorkingDay]


class UnavailabilityCreate(BaseModel):
    start_time: datetime
    end_time: datetime
    reason: Optional[str] = Field(default=None, max_length=255)


class UnavailabilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    doctor_id: int
    start_time: datetime
    end_time: datetime
    reason: Optional[str] = None


class SlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start: datetime
    end: datetime


class DaySlotsResponse(BaseModel):
    date: date
    slots: List[SlotResponse]


class AvailableSlotsResponse(BaseModel):
    doctor_id: int
    days: List[DaySlotsResponse]


class DayAvailabilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    available: bool
    working_hours: Optional[WorkingDay] = None
    slots: List[SlotResponse]


class ScheduledAppointment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: str
    start_time: datetime
    end_time: datetime
    status: str


class DayScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    working_hours: Optional[WorkingDay] = None
    appointments: List[ScheduledAppointment]
    unavailabilities: List[UnavailabilityResponse]

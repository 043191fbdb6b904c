from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
import logging
from datetime import date, datetime, time, timedelta

from ..application.ports.doctors_repo import WorkingDayDto
from ..application.ports.user_repo import CurrentUser
from ..application.services.calendar_service import CalendarService
from ..application.services.doctor_service import DoctorService
from ..schemas.common.common import MessageResponse
from ..schemas.doctors.doctor import (
    DoctorCreate,
    DoctorUpdate,
    DoctorResponse,
    WorkingDay,
    WorkingHoursRequest,
    WorkingHoursResponse,
    UnavailabilityCreate,
    UnavailabilityResponse,
    SlotResponse,
    DaySlotsResponse,
    AvailableSlotsResponse,
    DayAvailabilityResponse,
    DayScheduleResponse,
)
from ..security import get_current_user, require_admin
from .deps import get_calendar_service, get_doctor_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["Doctors"])


@router.post("/", response_model=DoctorResponse, status_code=201)
def create_doctor(
    data: DoctorCreate,
    current_user: CurrentUser = Depends(require_admin),
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    try:
        doctor = doctor_service.create(data.first_name, data.last_name, data.speciality, data.email, data.user_id)
        return DoctorResponse.model_validate(doctor)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating doctor: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create doctor")


@router.get("/", response_model=List[DoctorResponse])
def list_doctors(
    speciality: Optional[str] = None,
    available: Optional[bool] = None,
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    try:
        return [DoctorResponse.model_validate(d) for d in doctor_service.list(speciality, available)]
    except Exception as e:
        logger.error(f"Error listing doctors: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve doctors")


@router.get("/search", response_model=List[DoctorResponse])
def search_doctors(
    q: str = Query(..., description="Name or speciality"),
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    return [DoctorResponse.model_validate(d) for d in doctor_service.search(q)]


@router.get("/{doctor_id}", response_model=DoctorResponse)
def get_doctor(doctor_id: int, doctor_service: DoctorService = Depends(get_doctor_service)):
    return DoctorResponse.model_validate(doctor_service.get(doctor_id))


@router.put("/{doctor_id}", response_model=DoctorResponse)
def update_doctor(
    doctor_id: int,
    data: DoctorUpdate,
    current_user: CurrentUser = Depends(require_admin),
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    try:
        doctor = doctor_service.update(doctor_id, **data.model_dump(exclude_unset=True))
        return DoctorResponse.model_validate(doctor)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating doctor {doctor_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update doctor")


@router.put("/{doctor_id}/availability", response_model=DoctorResponse)
def toggle_availability(
    doctor_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    doctor_service.ensure_can_manage(current_user, doctor_id)
    return DoctorResponse.model_validate(doctor_service.toggle_availability(doctor_id))


# Calendar

@router.get("/{doctor_id}/working-hours", response_model=WorkingHoursResponse)
def get_working_hours(doctor_id: int, calendar: CalendarService = Depends(get_calendar_service)):
    hours = calendar.get_working_hours(doctor_id)
    return WorkingHoursResponse(
        doctor_id=doctor_id,
        hours={day: WorkingDay.model_validate(h) for day, h in hours.items()},
    )


@router.put("/{doctor_id}/working-hours", response_model=WorkingHoursResponse)
def set_working_hours(
    doctor_id: int,
    data: WorkingHoursRequest,
    current_user: CurrentUser = Depends(get_current_user),
    doctor_service: DoctorService = Depends(get_doctor_service),
    calendar: CalendarService = Depends(get_calendar_service),
):
    try:
        doctor_service.ensure_can_manage(current_user, doctor_id)
        hours = {
            day: WorkingDayDto(start=h.start, end=h.end, lunch_start=h.lunch_start, lunch_end=h.lunch_end)
            for day, h in data.hours.items()
        }
        saved = calendar.set_working_hours(doctor_id, hours)
        return WorkingHoursResponse(
            doctor_id=doctor_id,
            hours={day: WorkingDay.model_validate(h) for day, h in saved.items()},
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error setting working hours for doctor {doctor_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update working hours")


@router.get("/{doctor_id}/slots", response_model=AvailableSlotsResponse)
def get_available_slots(
    doctor_id: int,
    start_date: date,
    end_date: date,
    duration: Optional[int] = Query(default=None, gt=0),
    calendar: CalendarService = Depends(get_calendar_service),
):
    try:
        slots = calendar.get_available_slots(doctor_id, start_date, end_date, duration)
        return AvailableSlotsResponse(
            doctor_id=doctor_id,
            days=[
                DaySlotsResponse(date=day, slots=[SlotResponse.model_validate(s) for s in day_slots])
                for day, day_slots in sorted(slots.items())
            ],
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error computing slots for doctor {doctor_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve available slots")


@router.get("/{doctor_id}/availability", response_model=List[DayAvailabilityResponse])
def get_doctor_availability(
    doctor_id: int,
    start_date: date,
    end_date: date,
    calendar: CalendarService = Depends(get_calendar_service),
):
    try:
        return [
            DayAvailabilityResponse.model_validate(day)
            for day in calendar.get_doctor_availability(doctor_id, start_date, end_date)
        ]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error computing availability for doctor {doctor_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve availability")


@router.get("/{doctor_id}/schedule", response_model=DayScheduleResponse)
def get_doctor_schedule(
    doctor_id: int,
    day: date = Query(..., alias="date"),
    current_user: CurrentUser = Depends(get_current_user),
    doctor_service: DoctorService = Depends(get_doctor_service),
    calendar: CalendarService = Depends(get_calendar_service),
):
    doctor_service.ensure_can_manage(current_user, doctor_id)
    return DayScheduleResponse.model_validate(calendar.get_doctor_schedule(doctor_id, day))


@router.get("/{doctor_id}/unavailabilities", response_model=List[UnavailabilityResponse])
def list_unavailabilities(
    doctor_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    current_user: CurrentUser = Depends(get_current_user),
    doctor_service: DoctorService = Depends(get_doctor_service),
    calendar: CalendarService = Depends(get_calendar_service),
):
    doctor_service.ensure_can_manage(current_user, doctor_id)
    start = start or datetime.combine(date.today(), time.min)
    end = end or start + timedelta(days=calendar.max_advance_days)
    return [UnavailabilityResponse.model_validate(u) for u in calendar.list_unavailabilities(doctor_id, start, end)]


@router.post("/{doctor_id}/unavailabilities", response_model=UnavailabilityResponse, status_code=201)
def add_unavailability(
    doctor_id: int,
    data: UnavailabilityCreate,
    current_user: CurrentUser = Depends(get_current_user),
    doctor_service: DoctorService = Depends(get_doctor_service),
    calendar: CalendarService = Depends(get_calendar_service),
):
    try:
        doctor_service.ensure_can_manage(current_user, doctor_id)
        unavailability = calendar.add_unavailability(doctor_id, data.start_time, data.end_time, data.reason)
        return UnavailabilityResponse.model_validate(unavailability)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error adding unavailability for doctor {doctor_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to add unavailability")


@router.delete("/{doctor_id}/unavailabilities/{unavailability_id}", response_model=MessageResponse)
def remove_unavailability(
    doctor_id: int,
    unavailability_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    doctor_service: DoctorService = Depends(get_doctor_service),
    calendar: CalendarService = Depends(get_calendar_service),
):
    doctor_service.ensure_can_manage(current_user, doctor_id)
    calendar.remove_unavailability(doctor_id, unavailability_id)
    return MessageResponse(message="Unavailability removed")

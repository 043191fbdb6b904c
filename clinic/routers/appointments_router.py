from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
import logging
from datetime import datetime

from ..application.ports.user_repo import CurrentUser
from ..application.services.appointments_service import AppointmentsService
from ..schemas.appointments.appointment import (
    AppointmentCreate,
    AppointmentCancel,
    AppointmentReschedule,
    AppointmentComplete,
    AppointmentResponse,
)
from ..security import get_current_user
from .deps import get_appointments_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def _to_response(appt) -> AppointmentResponse:
    return AppointmentResponse.model_validate(appt)


@router.post("/", response_model=AppointmentResponse, status_code=201)
def book_appointment(
    data: AppointmentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        appt = appt_service.create(current_user, data.doctor_id, data.service_id, data.start_time, data.reason)
        return _to_response(appt)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error booking appointment: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to book appointment")


@router.get("/", response_model=List[AppointmentResponse])
def get_my_appointments(
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return [_to_response(a) for a in appt_service.list_for_patient(current_user)]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving appointments: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve appointments")


@router.get("/upcoming", response_model=List[AppointmentResponse])
def get_upcoming_appointments(
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return [_to_response(a) for a in appt_service.upcoming(current_user)]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving upcoming appointments: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve appointments")


@router.get("/doctor", response_model=List[AppointmentResponse])
def get_doctor_appointments(
    doctor_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return [_to_response(a) for a in appt_service.list_for_doctor(current_user, doctor_id, start, end)]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving doctor appointments: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve appointments")


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return _to_response(appt_service.get_for_user(current_user, appointment_id))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving appointment {appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve appointment")


@router.put("/{appointment_id}/confirm", response_model=AppointmentResponse)
def confirm_appointment(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return _to_response(appt_service.confirm(current_user, appointment_id))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error confirming appointment {appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to confirm appointment")


@router.put("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    data: Optional[AppointmentCancel] = None,
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        reason = data.reason if data else None
        return _to_response(appt_service.cancel(current_user, appointment_id, reason))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error cancelling appointment {appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to cancel appointment")


@router.put("/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: int,
    data: AppointmentReschedule,
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return _to_response(appt_service.reschedule(current_user, appointment_id, data.start_time))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error rescheduling appointment {appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to reschedule appointment")


@router.put("/{appointment_id}/complete", response_model=AppointmentResponse)
def complete_appointment(
    appointment_id: int,
    data: Optional[AppointmentComplete] = None,
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        notes = data.notes if data else None
        return _to_response(appt_service.complete(current_user, appointment_id, notes))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error completing appointment {appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to complete appointment")


@router.put("/{appointment_id}/no-show", response_model=AppointmentResponse)
def mark_no_show(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return _to_response(appt_service.mark_no_show(current_user, appointment_id))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error marking appointment {appointment_id} as no-show: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update appointment")

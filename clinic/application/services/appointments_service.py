import logging
from dataclasses import dataclass
from typing import List, Optional
from datetime import datetime
from fastapi import HTTPException

from ...core.config import settings
from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto, ACTIVE_STATUSES
from ..ports.doctors_repo import DoctorsRepository, DoctorDto
from ..ports.services_repo import MedicalServicesRepository
from ..ports.rate_limiter import RateLimiter
from ..ports.user_repo import CurrentUser
from .calendar_service import CalendarService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class AppointmentsService:
    repo: AppointmentsRepository
    doctors: DoctorsRepository
    services: MedicalServicesRepository
    calendar: CalendarService
    notifier: NotificationService
    rate_limiter: Optional[RateLimiter] = None
    booking_limit: int = settings.BOOKING_RATE_LIMIT
    booking_window_seconds: int = settings.BOOKING_RATE_WINDOW_SEC

    def _now(self) -> datetime:
        return self.calendar.now()

    def _get(self, appointment_id: int) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appt

    def _doctor(self, doctor_id: int) -> DoctorDto:
        doctor = self.doctors.get(doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        return doctor

    def _is_own_doctor(self, user: CurrentUser, doctor: DoctorDto) -> bool:
        return user.is_doctor and doctor.user_id == user.id

    def _can_view(self, user: CurrentUser, appt: AppointmentDto, doctor: Optional[DoctorDto]) -> bool:
        if user.is_admin or appt.patient_id == user.id:
            return True
        return doctor is not None and self._is_own_doctor(user, doctor)

    def _validate_booking_time(self, start_time: datetime) -> None:
        now = self._now()
        if start_time <= now:
            raise HTTPException(status_code=400, detail="Appointment time must be in the future")
        if start_time < now + self.calendar.min_advance:
            raise HTTPException(
                status_code=400,
                detail=f"Appointments must be booked at least {self.calendar.min_advance_hours} hours in advance",
            )
        if start_time > now + self.calendar.max_advance:
            raise HTTPException(
                status_code=400,
                detail=f"Appointments cannot be booked more than {self.calendar.max_advance_days} days in advance",
            )

    def create(self, user: CurrentUser, doctor_id: int, service_id: int, start_time: datetime,
               reason: Optional[str] = None) -> AppointmentDto:
        if user.role != "patient":
            raise HTTPException(status_code=403, detail="Only patients can book appointments")

        if self.rate_limiter and not self.rate_limiter.allow(
            f"booking:{user.id}", self.booking_limit, self.booking_window_seconds
        ):
            raise HTTPException(status_code=429, detail="Too many booking attempts. Please try again later.")

        doctor = self._doctor(doctor_id)
        if not doctor.is_available:
            raise HTTPException(status_code=400, detail="Doctor is not available")

        service = self.services.get(service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        if not service.is_active:
            raise HTTPException(status_code=400, detail="Service is not available")
        if doctor_id not in service.doctor_ids:
            raise HTTPException(status_code=400, detail="Doctor does not offer this service")

        self._validate_booking_time(start_time)
        if not self.calendar.is_slot_available(doctor_id, start_time, service.duration):
            raise HTTPException(status_code=409, detail="Selected time slot is not available")

        appt = self.repo.create(user.id, doctor_id, service_id, start_time, service.duration, reason)
        self.notifier.send_booking_notifications(appt, doctor)
        logger.info(f"Appointment {appt.id} booked by patient {user.id} with doctor {doctor_id}")
        return appt

    def confirm(self, user: CurrentUser, appointment_id: int) -> AppointmentDto:
        appt = self._get(appointment_id)
        doctor = self._doctor(appt.doctor_id)
        if not (user.is_admin or self._is_own_doctor(user, doctor)):
            raise HTTPException(status_code=403, detail="Not allowed to confirm this appointment")
        if appt.status != "pending":
            raise HTTPException(status_code=400, detail="Only pending appointments can be confirmed")

        appt = self.repo.update(appointment_id, status="scheduled")
        self.notifier.send_appointment_confirmation(appt, doctor)
        logger.info(f"Appointment {appointment_id} confirmed")
        return appt

    def cancel(self, user: CurrentUser, appointment_id: int, reason: Optional[str] = None) -> AppointmentDto:
        appt = self._get(appointment_id)
        doctor = self.doctors.get(appt.doctor_id)
        if not self._can_view(user, appt, doctor):
            raise HTTPException(status_code=404, detail="Appointment not found")
        if appt.status not in ACTIVE_STATUSES:
            raise HTTPException(status_code=400, detail=f"Cannot cancel an appointment that is {appt.status}")

        appt = self.repo.update(appointment_id, status="cancelled", cancellation_reason=reason)
        if doctor:
            self.notifier.send_cancellation_notification(appt, doctor, reason)
        logger.info(f"Appointment {appointment_id} cancelled by user {user.id}")
        return appt

    def reschedule(self, user: CurrentUser, appointment_id: int, new_start: datetime) -> AppointmentDto:
        appt = self._get(appointment_id)
        doctor = self.doctors.get(appt.doctor_id)
        if not self._can_view(user, appt, doctor):
            raise HTTPException(status_code=404, detail="Appointment not found")
        if appt.status not in ACTIVE_STATUSES:
            raise HTTPException(status_code=400, detail=f"Cannot reschedule an appointment that is {appt.status}")

        self._validate_booking_time(new_start)
        if not self.calendar.is_slot_available(
            appt.doctor_id, new_start, appt.duration, exclude_appointment_id=appointment_id
        ):
            raise HTTPException(status_code=409, detail="Selected time slot is not available")

        previous_start = appt.start_time
        appt = self.repo.update(appointment_id, start_time=new_start)
        if doctor:
            self.notifier.send_reschedule_notification(appt, doctor, previous_start)
        logger.info(f"Appointment {appointment_id} rescheduled from {previous_start:%Y-%m-%d %H:%M} to {new_start:%Y-%m-%d %H:%M}")
        return appt

    def _ensure_doctor_or_admin(self, user: CurrentUser, appt: AppointmentDto) -> None:
        doctor = self._doctor(appt.doctor_id)
        if not (user.is_admin or self._is_own_doctor(user, doctor)):
            raise HTTPException(status_code=403, detail="Only the appointment's doctor or an admin can do this")

    def complete(self, user: CurrentUser, appointment_id: int, notes: Optional[str] = None) -> AppointmentDto:
        appt = self._get(appointment_id)
        self._ensure_doctor_or_admin(user, appt)
        if appt.status != "scheduled":
            raise HTTPException(status_code=400, detail="Only scheduled appointments can be completed")
        fields = {"status": "completed"}
        if notes is not None:
            fields["notes"] = notes
        appt = self.repo.update(appointment_id, **fields)
        logger.info(f"Appointment {appointment_id} completed")
        return appt

    def mark_no_show(self, user: CurrentUser, appointment_id: int) -> AppointmentDto:
        appt = self._get(appointment_id)
        self._ensure_doctor_or_admin(user, appt)
        if appt.status != "scheduled":
            raise HTTPException(status_code=400, detail="Only scheduled appointments can be marked as no-show")
        if appt.start_time > self._now():
            raise HTTPException(status_code=400, detail="Appointment has not started yet")
        appt = self.repo.update(appointment_id, status="no_show")
        logger.info(f"Appointment {appointment_id} marked as no-show")
        return appt

    def list_for_patient(self, user: CurrentUser) -> List[AppointmentDto]:
        return sorted(self.repo.list_for_patient(user.id), key=lambda a: a.start_time)

    def _doctor_for_user(self, user: CurrentUser, doctor_id: Optional[int]) -> DoctorDto:
        if user.is_admin:
            if doctor_id is None:
                raise HTTPException(status_code=400, detail="doctor_id is required")
            return self._doctor(doctor_id)
        if not user.is_doctor:
            raise HTTPException(status_code=403, detail="Only doctors can list their appointments")
        doctor = self.doctors.get_by_user(user.id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor profile not found")
        return doctor

    def list_for_doctor(self, user: CurrentUser, doctor_id: Optional[int] = None,
                        start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[AppointmentDto]:
        doctor = self._doctor_for_user(user, doctor_id)
        return sorted(self.repo.list_for_doctor(doctor.id, start, end), key=lambda a: a.start_time)

    def upcoming(self, user: CurrentUser) -> List[AppointmentDto]:
        if user.is_doctor:
            appts = self.list_for_doctor(user)
        else:
            appts = self.list_for_patient(user)
        now = self._now()
        return [a for a in appts if a.is_active and a.start_time >= now]

    def get_for_user(self, user: CurrentUser, appointment_id: int) -> AppointmentDto:
        appt = self._get(appointment_id)
        if not self._can_view(user, appt, self.doctors.get(appt.doctor_id)):
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appt

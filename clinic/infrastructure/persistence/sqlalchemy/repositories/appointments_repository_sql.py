from typing import Dict, List, Optional
from datetime import datetime, timedelta
from sqlmodel import Session, select, func

from .....db.models import Appointment
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    ACTIVE_STATUSES,
)

# Appointments never last longer than a day, so this bounds the overlap query
MAX_APPOINTMENT_SPAN = timedelta(days=1)


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            patient_id=a.patient_id,
            doctor_id=a.doctor_id,
            service_id=a.service_id,
            start_time=a.start_time,
            duration=a.duration,
            status=a.status,
            reason=a.reason,
            notes=a.notes,
            cancellation_reason=a.cancellation_reason,
            reminder_sent_at=a.reminder_sent_at,
            created_at=a.created_at,
        )

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        a = self.session.get(Appointment, appointment_id)
        return self._to_dto(a) if a else None

    def find_active_overlapping(self, doctor_id: int, start: datetime, end: datetime) -> List[AppointmentDto]:
        rows = self.session.exec(
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.status.in_(ACTIVE_STATUSES))
            .where(Appointment.start_time < end)
            .where(Appointment.start_time > start - MAX_APPOINTMENT_SPAN)
            .order_by(Appointment.start_time)
        ).all()
        appts = [self._to_dto(r) for r in rows]
        return [a for a in appts if a.end_time > start]

    def create(self, patient_id: str, doctor_id: int, service_id: int, start_time: datetime, duration: int, reason: Optional[str]) -> AppointmentDto:
        appt = Appointment(
            patient_id=patient_id,
            doctor_id=doctor_id,
            service_id=service_id,
            start_time=start_time,
            duration=duration,
            reason=reason,
            status="pending",
        )
        self.session.add(appt)
        self.session.commit()
        self.session.refresh(appt)
        return self._to_dto(appt)

    def update(self, appointment_id: int, **fields) -> AppointmentDto:
        a = self.session.get(Appointment, appointment_id)
        for key, value in fields.items():
            setattr(a, key, value)
        a.updated_at = datetime.now()
        self.session.add(a)
        self.session.commit()
        self.session.refresh(a)
        return self._to_dto(a)

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        rows = self.session.exec(
            select(Appointment).where(Appointment.patient_id == patient_id).order_by(Appointment.start_time)
        ).all()
        return [self._to_dto(r) for r in rows]

    def list_for_doctor(self, doctor_id: int, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[AppointmentDto]:
        query = select(Appointment).where(Appointment.doctor_id == doctor_id)
        if start:
            query = query.where(Appointment.start_time >= start)
        if end:
            query = query.where(Appointment.start_time < end)
        rows = self.session.exec(query.order_by(Appointment.start_time)).all()
        return [self._to_dto(r) for r in rows]

    def list_in_range(self, start: datetime, end: datetime) -> List[AppointmentDto]:
        rows = self.session.exec(
            select(Appointment)
            .where(Appointment.start_time >= start)
            .where(Appointment.start_time < end)
            .order_by(Appointment.start_time)
        ).all()
        return [self._to_dto(r) for r in rows]

    def count_by_status(self) -> Dict[str, int]:
        rows = self.session.exec(
            select(Appointment.status, func.count()).group_by(Appointment.status)
        ).all()
        return {status: count for status, count in rows}

    def count_completed_for_patient(self, patient_id: str) -> int:
        return self.session.exec(
            select(func.count())
            .select_from(Appointment)
            .where(Appointment.patient_id == patient_id)
            .where(Appointment.status == "completed")
        ).one()

    def count_for_service(self, service_id: int) -> int:
        return self.session.exec(
            select(func.count()).select_from(Appointment).where(Appointment.service_id == service_id)
        ).one()

    def find_needing_reminders(self, start: datetime, end: datetime) -> List[AppointmentDto]:
        rows = self.session.exec(
            select(Appointment)
            .where(Appointment.status.in_(ACTIVE_STATUSES))
            .where(Appointment.reminder_sent_at.is_(None))
            .where(Appointment.start_time > start)
            .where(Appointment.start_time <= end)
            .order_by(Appointment.start_time)
        ).all()
        return [self._to_dto(r) for r in rows]

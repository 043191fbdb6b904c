import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from datetime import datetime, date, time, timedelta
from fastapi import HTTPException

from ...core.config import settings
from ..ports.doctors_repo import DoctorsRepository, DoctorDto, WorkingDayDto
from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto
from ..ports.time_slots_repo import UnavailabilityRepository, UnavailabilityDto
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
UNAVAILABLE_REASON = "Doctor unavailable during this time"


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime


@dataclass
class DaySchedule:
    date: date
    working_hours: Optional[WorkingDayDto]
    appointments: List[AppointmentDto]
    unavailabilities: List[UnavailabilityDto]


@dataclass
class DayAvailability:
    date: date
    available: bool
    working_hours: Optional[WorkingDayDto]
    slots: List[Slot]


def overlaps(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    # half-open intervals: touching ends do not overlap
    return start1 < end2 and end1 > start2


def parse_hhmm(value: str) -> time:
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValueError(f"Invalid time '{value}'. Use HH:MM")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def day_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def day_bounds(day: date, hours: WorkingDayDto) -> Tuple[datetime, datetime, datetime, datetime]:
    """Concrete (start, end, lunch_start, lunch_end) datetimes of a working day."""
    return (
        datetime.combine(day, parse_hhmm(hours.start)),
        datetime.combine(day, parse_hhmm(hours.end)),
        datetime.combine(day, parse_hhmm(hours.lunch_start)),
        datetime.combine(day, parse_hhmm(hours.lunch_end)),
    )


def generate_day_slots(day: date, hours: WorkingDayDto, duration: int) -> List[Slot]:
    """Fixed-size slots from the start of the day, skipping lunch.

    A slot has to end by the end of the working day.
    """
    day_start, day_end, lunch_start, lunch_end = day_bounds(day, hours)
    step = timedelta(minutes=duration)
    slots = []
    current = day_start
    while current + step <= day_end:
        slot_end = current + step
        if not overlaps(current, slot_end, lunch_start, lunch_end):
            slots.append(Slot(current, slot_end))
        current = slot_end
    return slots


def within_working_hours(hours: Dict[str, WorkingDayDto], start: datetime, end: datetime) -> bool:
    day_hours = hours.get(day_name(start.date()))
    if day_hours is None:
        return False
    day_start, day_end, lunch_start, lunch_end = day_bounds(start.date(), day_hours)
    return start >= day_start and end <= day_end and not overlaps(start, end, lunch_start, lunch_end)


def is_free(start: datetime, end: datetime, busy: Iterable[Tuple[datetime, datetime]]) -> bool:
    return not any(overlaps(start, end, b_start, b_end) for b_start, b_end in busy)


def normalize_hhmm(value: str) -> str:
    return parse_hhmm(value).strftime("%H:%M")


@dataclass
class CalendarService:
    doctors: DoctorsRepository
    appointments: AppointmentsRepository
    unavailabilities: UnavailabilityRepository
    notifier: Optional[NotificationService] = None
    slot_duration: int = settings.SLOT_DURATION_MINUTES
    min_advance_hours: int = settings.MIN_ADVANCE_BOOKING_HOURS
    max_advance_days: int = settings.MAX_ADVANCE_BOOKING_DAYS
    working_days: List[str] = field(default_factory=lambda: [d.lower() for d in settings.WORKING_DAYS])
    now: Callable[[], datetime] = datetime.now

    @property
    def min_advance(self) -> timedelta:
        return timedelta(hours=self.min_advance_hours)

    @property
    def max_advance(self) -> timedelta:
        return timedelta(days=self.max_advance_days)

    def _require_doctor(self, doctor_id: int) -> DoctorDto:
        doctor = self.doctors.get(doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        return doctor

    def validate_date_range(self, start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise HTTPException(status_code=400, detail="Start date must be before end date")
        if (end_date - start_date).days > self.max_advance_days:
            raise HTTPException(
                status_code=400,
                detail=f"Date range cannot exceed {self.max_advance_days} days",
            )

    def _busy_intervals(self, doctor_id: int, start: datetime, end: datetime,
                        exclude_appointment_id: Optional[int] = None) -> List[Tuple[datetime, datetime]]:
        busy = [
            (a.start_time, a.end_time)
            for a in self.appointments.find_active_overlapping(doctor_id, start, end)
            if a.id != exclude_appointment_id
        ]
        busy.extend(
            (u.start_time, u.end_time)
            for u in self.unavailabilities.find_overlapping(doctor_id, start, end)
        )
        return busy

    def _duration(self, duration: Optional[int]) -> int:
        duration = self.slot_duration if duration is None else duration
        if duration <= 0:
            raise HTTPException(status_code=400, detail="Duration must be positive")
        return duration

    def get_available_slots(self, doctor_id: int, start_date: date, end_date: date,
                            duration: Optional[int] = None) -> Dict[date, List[Slot]]:
        self.validate_date_range(start_date, end_date)
        duration = self._duration(duration)
        self._require_doctor(doctor_id)

        hours = self.doctors.get_working_hours(doctor_id)
        range_start = datetime.combine(start_date, time.min)
        range_end = datetime.combine(end_date + timedelta(days=1), time.min)
        busy = self._busy_intervals(doctor_id, range_start, range_end)

        now = self.now()
        earliest = now + self.min_advance
        latest = now + self.max_advance

        result: Dict[date, List[Slot]] = {}
        day = start_date
        while day <= end_date:
            day_hours = hours.get(day_name(day))
            if day_hours is not None:
                free = [
                    slot
                    for slot in generate_day_slots(day, day_hours, duration)
                    if earliest <= slot.start <= latest and is_free(slot.start, slot.end, busy)
                ]
                if free:
                    result[day] = free
            day += timedelta(days=1)
        return result

    def is_slot_available(self, doctor_id: int, start: datetime, duration: Optional[int] = None,
                          exclude_appointment_id: Optional[int] = None) -> bool:
        end = start + timedelta(minutes=self._duration(duration))
        hours = self.doctors.get_working_hours(doctor_id)
        if not within_working_hours(hours, start, end):
            return False
        return is_free(start, end, self._busy_intervals(doctor_id, start, end, exclude_appointment_id))

    def get_working_hours(self, doctor_id: int) -> Dict[str, WorkingDayDto]:
        self._require_doctor(doctor_id)
        return self.doctors.get_working_hours(doctor_id)

    def get_doctor_schedule(self, doctor_id: int, day: date) -> DaySchedule:
        self._require_doctor(doctor_id)
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        return DaySchedule(
            date=day,
            working_hours=self.doctors.get_working_hours(doctor_id).get(day_name(day)),
            appointments=self.appointments.find_active_overlapping(doctor_id, start, end),
            unavailabilities=self.unavailabilities.find_overlapping(doctor_id, start, end),
        )

    def get_doctor_availability(self, doctor_id: int, start_date: date, end_date: date) -> List[DayAvailability]:
        slots = self.get_available_slots(doctor_id, start_date, end_date)
        hours = self.doctors.get_working_hours(doctor_id)
        availability = []
        day = start_date
        while day <= end_date:
            day_slots = slots.get(day, [])
            availability.append(DayAvailability(
                date=day,
                available=bool(day_slots),
                working_hours=hours.get(day_name(day)),
                slots=day_slots,
            ))
            day += timedelta(days=1)
        return availability

    def _validate_working_hours(self, hours: Dict[str, WorkingDayDto]) -> Dict[str, WorkingDayDto]:
        normalized = {}
        for day, value in hours.items():
            day_key = day.lower()
            if day_key not in self.working_days:
                raise HTTPException(status_code=400, detail=f"Invalid working day: {day}")
            try:
                start, end, lunch_start, lunch_end = (
                    normalize_hhmm(value.start),
                    normalize_hhmm(value.end),
                    normalize_hhmm(value.lunch_start),
                    normalize_hhmm(value.lunch_end),
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=f"{day}: {e}")
            # zero-padded HH:MM strings compare chronologically
            if start >= end:
                raise HTTPException(status_code=400, detail=f"{day}: start time must be before end time")
            if lunch_start > lunch_end:
                raise HTTPException(status_code=400, detail=f"{day}: lunch start must not be after lunch end")
            if lunch_start < start or lunch_end > end:
                raise HTTPException(status_code=400, detail=f"{day}: lunch break must be within working hours")
            normalized[day_key] = WorkingDayDto(start=start, end=end, lunch_start=lunch_start, lunch_end=lunch_end)
        return normalized

    def set_working_hours(self, doctor_id: int, hours: Dict[str, WorkingDayDto]) -> Dict[str, WorkingDayDto]:
        self._require_doctor(doctor_id)
        normalized = self._validate_working_hours(hours)
        self.doctors.replace_working_hours(doctor_id, normalized)
        logger.info(f"Working hours updated for doctor {doctor_id}")
        return normalized

    def seed_default_hours(self, doctor_id: int) -> None:
        default = WorkingDayDto(
            start=settings.DEFAULT_DAY_START,
            end=settings.DEFAULT_DAY_END,
            lunch_start=settings.DEFAULT_LUNCH_START,
            lunch_end=settings.DEFAULT_LUNCH_END,
        )
        self.doctors.replace_working_hours(doctor_id, {day: default for day in self.working_days})

    def add_unavailability(self, doctor_id: int, start: datetime, end: datetime,
                           reason: Optional[str] = None) -> UnavailabilityDto:
        doctor = self._require_doctor(doctor_id)
        if start >= end:
            raise HTTPException(status_code=400, detail="Start time must be before end time")

        unavailability = self.unavailabilities.create(doctor_id, start, end, reason)

        affected = self.appointments.find_active_overlapping(doctor_id, start, end)
        for appointment in affected:
            cancelled = self.appointments.update(
                appointment.id, status="cancelled", cancellation_reason=UNAVAILABLE_REASON
            )
            if self.notifier:
                self.notifier.send_cancellation_notification(cancelled, doctor, UNAVAILABLE_REASON)

        logger.info(
            f"Unavailability added for doctor {doctor_id} from {start:%Y-%m-%d %H:%M} "
            f"to {end:%Y-%m-%d %H:%M}, {len(affected)} appointment(s) cancelled"
        )
        return unavailability

    def remove_unavailability(self, doctor_id: int, unavailability_id: int) -> None:
        unavailability = self.unavailabilities.get(unavailability_id)
        if not unavailability or unavailability.doctor_id != doctor_id:
            raise HTTPException(status_code=404, detail="Unavailability not found")
        self.unavailabilities.delete(unavailability_id)
        logger.info(f"Unavailability {unavailability_id} removed for doctor {doctor_id}")

    def list_unavailabilities(self, doctor_id: int, start: datetime, end: datetime) -> List[UnavailabilityDto]:
        self._require_doctor(doctor_id)
        if start > end:
            raise HTTPException(status_code=400, detail="Start date must be before end date")
        return self.unavailabilities.find_overlapping(doctor_id, start, end)

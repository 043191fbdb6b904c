from dataclasses import dataclass
from typing import Dict, List, Optional
from datetime import datetime, timedelta

ACTIVE_STATUSES = ("pending", "scheduled")


@dataclass
class AppointmentDto:
    id: int
    patient_id: str
    doctor_id: int
    service_id: int
    start_time: datetime
    duration: int
    status: str
    reason: Optional[str]
    notes: Optional[str]
    cancellation_reason: Optional[str]
    reminder_sent_at: Optional[datetime]
    created_at: datetime

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class AppointmentsRepository:
    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        ...

    def find_active_overlapping(self, doctor_id: int, start: datetime, end: datetime) -> List[AppointmentDto]:
        """Active appointments of the doctor whose interval intersects [start, end)."""
        ...

    def create(self, patient_id: str, doctor_id: int, service_id: int, start_time: datetime, duration: int, reason: Optional[str]) -> AppointmentDto:
        ...

    def update(self, appointment_id: int, **fields) -> AppointmentDto:
        ...

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        ...

    def list_for_doctor(self, doctor_id: int, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[AppointmentDto]:
        ...

    def list_in_range(self, start: datetime, end: datetime) -> List[AppointmentDto]:
        ...

    def count_by_status(self) -> Dict[str, int]:
        ...

    def count_completed_for_patient(self, patient_id: str) -> int:
        ...

    def count_for_service(self, service_id: int) -> int:
        ...

    def find_needing_reminders(self, start: datetime, end: datetime) -> List[AppointmentDto]:
        ...

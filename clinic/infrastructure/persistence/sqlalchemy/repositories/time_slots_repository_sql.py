from typing import List, Optional
from datetime import datetime
from sqlmodel import Session, select

from .....db.models import TimeSlot
from .....application.ports.time_slots_repo import UnavailabilityRepository, UnavailabilityDto


class SqlUnavailabilityRepository(UnavailabilityRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, s: TimeSlot) -> UnavailabilityDto:
        return UnavailabilityDto(
            id=s.id,
            doctor_id=s.doctor_id,
            start_time=s.start_time,
            end_time=s.end_time,
            reason=s.reason,
        )

    def find_overlapping(self, doctor_id: int, start: datetime, end: datetime) -> List[UnavailabilityDto]:
        rows = self.session.exec(
            select(TimeSlot)
            .where(TimeSlot.doctor_id == doctor_id)
            .where(TimeSlot.type == "unavailable")
            .where(TimeSlot.start_time < end)
            .where(TimeSlot.end_time > start)
            .order_by(TimeSlot.start_time)
        ).all()
        return [self._to_dto(r) for r in rows]

    def get(self, slot_id: int) -> Optional[UnavailabilityDto]:
        s = self.session.get(TimeSlot, slot_id)
        return self._to_dto(s) if s and s.type == "unavailable" else None

    def create(self, doctor_id: int, start: datetime, end: datetime, reason: Optional[str]) -> UnavailabilityDto:
        s = TimeSlot(doctor_id=doctor_id, start_time=start, end_time=end, type="unavailable", reason=reason)
        self.session.add(s)
        self.session.commit()
        self.session.refresh(s)
        return self._to_dto(s)

    def delete(self, slot_id: int) -> None:
        s = self.session.get(TimeSlot, slot_id)
        if not s:
            return
        self.session.delete(s)
        self.session.commit()

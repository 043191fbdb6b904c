from dataclasses import dataclass
from typing import List, Optional
from datetime import datetime


@dataclass
class UnavailabilityDto:
    id: int
    doctor_id: int
    start_time: datetime
    end_time: datetime
    reason: Optional[str]


class UnavailabilityRepository:
    def find_overlapping(self, doctor_id: int, start: datetime, end: datetime) -> List[UnavailabilityDto]:
        ...

    def get(self, slot_id: int) -> Optional[UnavailabilityDto]:
        ...

    def create(self, doctor_id: int, start: datetime, end: datetime, reason: Optional[str]) -> UnavailabilityDto:
        ...

    def delete(self, slot_id: int) -> None:
        ...

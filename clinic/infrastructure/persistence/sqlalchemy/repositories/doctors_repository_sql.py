from typing import Dict, List, Optional
from sqlmodel import Session, select, func, or_

from .....db.models import Doctor, WorkingHours, DoctorServiceLink
from .....application.ports.doctors_repo import DoctorsRepository, DoctorDto, WorkingDayDto


class SqlDoctorsRepository(DoctorsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, d: Doctor) -> DoctorDto:
        service_ids = self.session.exec(
            select(DoctorServiceLink.service_id).where(DoctorServiceLink.doctor_id == d.id)
        ).all()
        return DoctorDto(
            id=d.id,
            user_id=d.user_id,
            first_name=d.first_name,
            last_name=d.last_name,
            speciality=d.speciality,
            email=d.email,
            is_available=bool(d.is_available),
            created_at=d.created_at,
            service_ids=list(service_ids),
        )

    def get(self, doctor_id: int) -> Optional[DoctorDto]:
        d = self.session.get(Doctor, doctor_id)
        return self._to_dto(d) if d else None

    def get_by_user(self, user_id: str) -> Optional[DoctorDto]:
        d = self.session.exec(select(Doctor).where(Doctor.user_id == user_id)).first()
        return self._to_dto(d) if d else None

    def list(self, speciality: Optional[str] = None, available: Optional[bool] = None) -> List[DoctorDto]:
        query = select(Doctor)
        if speciality:
            query = query.where(Doctor.speciality.ilike(f"%{speciality}%"))
        if available is not None:
            query = query.where(Doctor.is_available == available)
        rows = self.session.exec(query.order_by(Doctor.last_name, Doctor.first_name)).all()
        return [self._to_dto(d) for d in rows]

    def search(self, query: str) -> List[DoctorDto]:
        pattern = f"%{query}%"
        rows = self.session.exec(
            select(Doctor)
            .where(or_(
                Doctor.first_name.ilike(pattern),
                Doctor.last_name.ilike(pattern),
                Doctor.speciality.ilike(pattern),
            ))
            .order_by(Doctor.last_name, Doctor.first_name)
        ).all()
        return [self._to_dto(d) for d in rows]

    def create(self, user_id: Optional[str], first_name: str, last_name: str, speciality: str, email: Optional[str]) -> DoctorDto:
        d = Doctor(user_id=user_id, first_name=first_name, last_name=last_name, speciality=speciality, email=email)
        self.session.add(d)
        self.session.commit()
        self.session.refresh(d)
        return self._to_dto(d)

    def update(self, doctor_id: int, **fields) -> Optional[DoctorDto]:
        d = self.session.get(Doctor, doctor_id)
        if not d:
            return None
        for key, value in fields.items():
            setattr(d, key, value)
        self.session.add(d)
        self.session.commit()
        self.session.refresh(d)
        return self._to_dto(d)

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(Doctor)).one()

    def get_working_hours(self, doctor_id: int) -> Dict[str, WorkingDayDto]:
        rows = self.session.exec(select(WorkingHours).where(WorkingHours.doctor_id == doctor_id)).all()
        return {
            r.day_of_week: WorkingDayDto(start=r.start_time, end=r.end_time, lunch_start=r.lunch_start, lunch_end=r.lunch_end)
            for r in rows
        }

    def replace_working_hours(self, doctor_id: int, hours: Dict[str, WorkingDayDto]) -> None:
        for row in self.session.exec(select(WorkingHours).where(WorkingHours.doctor_id == doctor_id)).all():
            self.session.delete(row)
        for day, h in hours.items():
            self.session.add(WorkingHours(
                doctor_id=doctor_id,
                day_of_week=day,
                start_time=h.start,
                end_time=h.end,
                lunch_start=h.lunch_start,
                lunch_end=h.lunch_end,
            ))
        self.session.commit()

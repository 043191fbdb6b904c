from typing import Dict, List, Optional
from sqlmodel import Session, select, func, or_

from .....db.models import MedicalService, DoctorServiceLink
from .....application.ports.services_repo import MedicalServicesRepository, MedicalServiceDto


class SqlMedicalServicesRepository(MedicalServicesRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, s: MedicalService) -> MedicalServiceDto:
        doctor_ids = self.session.exec(
            select(DoctorServiceLink.doctor_id).where(DoctorServiceLink.service_id == s.id)
        ).all()
        return MedicalServiceDto(
            id=s.id,
            name=s.name,
            slug=s.slug,
            description=s.description,
            duration=s.duration,
            price=s.price,
            category=s.category,
            is_active=bool(s.is_active),
            doctor_ids=list(doctor_ids),
        )

    def get(self, service_id: int) -> Optional[MedicalServiceDto]:
        s = self.session.get(MedicalService, service_id)
        return self._to_dto(s) if s else None

    def get_by_name(self, name: str) -> Optional[MedicalServiceDto]:
        s = self.session.exec(select(MedicalService).where(func.lower(MedicalService.name) == name.lower())).first()
        return self._to_dto(s) if s else None

    def list(self, active: Optional[bool] = None, category: Optional[str] = None, doctor_id: Optional[int] = None) -> List[MedicalServiceDto]:
        query = select(MedicalService)
        if active is not None:
            query = query.where(MedicalService.is_active == active)
        if category:
            query = query.where(MedicalService.category == category)
        if doctor_id is not None:
            query = query.join(DoctorServiceLink, DoctorServiceLink.service_id == MedicalService.id).where(
                DoctorServiceLink.doctor_id == doctor_id
            )
        rows = self.session.exec(query.order_by(MedicalService.name)).all()
        return [self._to_dto(s) for s in rows]

    def search(self, query: str) -> List[MedicalServiceDto]:
        pattern = f"%{query}%"
        rows = self.session.exec(
            select(MedicalService)
            .where(MedicalService.is_active == True)  # noqa: E712
            .where(or_(
                MedicalService.name.ilike(pattern),
                MedicalService.description.ilike(pattern),
                MedicalService.category.ilike(pattern),
            ))
            .order_by(MedicalService.name)
        ).all()
        return [self._to_dto(s) for s in rows]

    def create(self, name: str, slug: str, description: str, duration: int, price: float, category: Optional[str]) -> MedicalServiceDto:
        s = MedicalService(name=name, slug=slug, description=description, duration=duration, price=price, category=category)
        self.session.add(s)
        self.session.commit()
        self.session.refresh(s)
        return self._to_dto(s)

    def update(self, service_id: int, **fields) -> MedicalServiceDto:
        s = self.session.get(MedicalService, service_id)
        for key, value in fields.items():
            setattr(s, key, value)
        self.session.add(s)
        self.session.commit()
        self.session.refresh(s)
        return self._to_dto(s)

    def delete(self, service_id: int) -> None:
        for link in self.session.exec(select(DoctorServiceLink).where(DoctorServiceLink.service_id == service_id)).all():
            self.session.delete(link)
        s = self.session.get(MedicalService, service_id)
        if s:
            self.session.delete(s)
        self.session.commit()

    def add_doctor(self, service_id: int, doctor_id: int) -> None:
        self.session.add(DoctorServiceLink(service_id=service_id, doctor_id=doctor_id))
        self.session.commit()

    def remove_doctor(self, service_id: int, doctor_id: int) -> None:
        link = self.session.get(DoctorServiceLink, (doctor_id, service_id))
        if link:
            self.session.delete(link)
            self.session.commit()

    def count_by_category(self) -> Dict[str, int]:
        rows = self.session.exec(
            select(MedicalService.category, func.count()).group_by(MedicalService.category)
        ).all()
        return {(category or "uncategorized"): count for category, count in rows}

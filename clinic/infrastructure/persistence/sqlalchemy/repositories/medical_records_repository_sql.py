import json
from typing import Any, Dict, List, Optional
from datetime import datetime
from sqlmodel import Session, select

from .....db.models import MedicalRecord, MedicalNote, Prescription
from .....application.ports.records_repo import (
    MedicalRecordsRepository,
    MedicalRecordDto,
    MedicalNoteDto,
    PrescriptionDto,
)


def _load(value: Optional[str]) -> Dict[str, Any]:
    return json.loads(value) if value else {}


class SqlMedicalRecordsRepository(MedicalRecordsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _record_to_dto(self, r: MedicalRecord) -> MedicalRecordDto:
        return MedicalRecordDto(
            id=r.id,
            patient_id=r.patient_id,
            doctor_id=r.doctor_id,
            type=r.type,
            title=r.title,
            description=r.description,
            date=r.date,
            metadata=_load(r.extra),
        )

    def _note_to_dto(self, n: MedicalNote) -> MedicalNoteDto:
        return MedicalNoteDto(
            id=n.id,
            record_id=n.record_id,
            doctor_id=n.doctor_id,
            content=n.content,
            metadata=_load(n.extra),
            created_at=n.created_at,
        )

    def _prescription_to_dto(self, p: Prescription) -> PrescriptionDto:
        return PrescriptionDto(
            id=p.id,
            patient_id=p.patient_id,
            doctor_id=p.doctor_id,
            medications=json.loads(p.medications),
            instructions=p.instructions,
            start_date=p.start_date,
            end_date=p.end_date,
            metadata=_load(p.extra),
        )

    def create_record(self, patient_id: str, doctor_id: Optional[str], type: str, title: str, description: str,
                      date: datetime, metadata: Dict[str, Any]) -> MedicalRecordDto:
        r = MedicalRecord(
            patient_id=patient_id,
            doctor_id=doctor_id,
            type=type,
            title=title,
            description=description,
            date=date,
            extra=json.dumps(metadata),
        )
        self.session.add(r)
        self.session.commit()
        self.session.refresh(r)
        return self._record_to_dto(r)

    def get_record(self, record_id: int) -> Optional[MedicalRecordDto]:
        r = self.session.get(MedicalRecord, record_id)
        return self._record_to_dto(r) if r else None

    def search_records(self, patient_id: str, type: Optional[str] = None, start: Optional[datetime] = None,
                       end: Optional[datetime] = None, doctor_id: Optional[str] = None,
                       limit: Optional[int] = None) -> List[MedicalRecordDto]:
        query = select(MedicalRecord).where(MedicalRecord.patient_id == patient_id)
        if type:
            query = query.where(MedicalRecord.type == type)
        if start:
            query = query.where(MedicalRecord.date >= start)
        if end:
            query = query.where(MedicalRecord.date <= end)
        if doctor_id:
            query = query.where(MedicalRecord.doctor_id == doctor_id)
        query = query.order_by(MedicalRecord.date.desc(), MedicalRecord.id.desc())
        if limit:
            query = query.limit(limit)
        return [self._record_to_dto(r) for r in self.session.exec(query).all()]

    def add_note(self, record_id: int, doctor_id: Optional[str], content: str, metadata: Dict[str, Any]) -> MedicalNoteDto:
        n = MedicalNote(record_id=record_id, doctor_id=doctor_id, content=content, extra=json.dumps(metadata))
        self.session.add(n)
        self.session.commit()
        self.session.refresh(n)
        return self._note_to_dto(n)

    def list_notes(self, record_id: int) -> List[MedicalNoteDto]:
        rows = self.session.exec(
            select(MedicalNote).where(MedicalNote.record_id == record_id).order_by(MedicalNote.created_at)
        ).all()
        return [self._note_to_dto(n) for n in rows]

    def create_prescription(self, patient_id: str, doctor_id: Optional[str], medications: List[str], instructions: str,
                            start_date: datetime, end_date: datetime, metadata: Dict[str, Any]) -> PrescriptionDto:
        p = Prescription(
            patient_id=patient_id,
            doctor_id=doctor_id,
            medications=json.dumps(medications),
            instructions=instructions,
            start_date=start_date,
            end_date=end_date,
            extra=json.dumps(metadata),
        )
        self.session.add(p)
        self.session.commit()
        self.session.refresh(p)
        return self._prescription_to_dto(p)

    def list_prescriptions(self, patient_id: str, active_on: Optional[datetime] = None) -> List[PrescriptionDto]:
        query = select(Prescription).where(Prescription.patient_id == patient_id)
        if active_on:
            query = query.where(Prescription.end_date >= active_on)
        rows = self.session.exec(query.order_by(Prescription.start_date.desc())).all()
        return [self._prescription_to_dto(p) for p in rows]

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, time
from fastapi import HTTPException

from ..ports.records_repo import (
    MedicalRecordsRepository,
    MedicalRecordDto,
    MedicalNoteDto,
    PrescriptionDto,
)
from ..ports.user_repo import CurrentUser, UserRepository

logger = logging.getLogger(__name__)

RECORD_TYPES = (
    "consultation",
    "prescription",
    "lab_result",
    "imaging",
    "vaccination",
    "allergy",
    "surgery",
    "chronic_condition",
    "vital_signs",
)


@dataclass
class MedicalRecordService:
    repo: MedicalRecordsRepository
    users: UserRepository
    now: Callable[[], datetime] = datetime.now

    def _ensure_can_access(self, user: CurrentUser, patient_id: str) -> None:
        if user.is_admin or user.is_doctor:
            return
        if user.id != patient_id:
            raise HTTPException(status_code=403, detail="Access to these medical records is denied")

    def _ensure_can_write(self, user: CurrentUser) -> None:
        if not (user.is_admin or user.is_doctor):
            raise HTTPException(status_code=403, detail="Only doctors and admins can modify medical records")

    def _ensure_patient(self, patient_id: str) -> None:
        patient = self.users.get_by_id(patient_id)
        if not patient or patient.role != "patient":
            raise HTTPException(status_code=404, detail="Patient not found")

    def create_medical_record(self, user: CurrentUser, patient_id: str, type: str, title: str,
                              description: str = "", date: Optional[datetime] = None,
                              metadata: Optional[Dict[str, Any]] = None) -> MedicalRecordDto:
        self._ensure_can_write(user)
        self._ensure_patient(patient_id)
        if type not in RECORD_TYPES:
            raise HTTPException(status_code=400, detail=f"Invalid record type. Allowed types: {', '.join(RECORD_TYPES)}")
        if not title or not title.strip():
            raise HTTPException(status_code=400, detail="Title is required")

        record = self.repo.create_record(
            patient_id, user.id, type, title.strip(), description or "", date or self.now(), metadata or {}
        )
        logger.info(f"Medical record {record.id} ({type}) created for patient {patient_id}")
        return record

    def get_record(self, user: CurrentUser, record_id: int) -> MedicalRecordDto:
        record = self.repo.get_record(record_id)
        if not record:
            raise HTTPException(status_code=404, detail="Medical record not found")
        self._ensure_can_access(user, record.patient_id)
        return record

    def add_medical_note(self, user: CurrentUser, record_id: int, content: str,
                         metadata: Optional[Dict[str, Any]] = None) -> MedicalNoteDto:
        self._ensure_can_write(user)
        record = self.get_record(user, record_id)
        if not content or not content.strip():
            raise HTTPException(status_code=400, detail="Note content is required")
        note = self.repo.add_note(record.id, user.id, content.strip(), metadata or {})
        logger.info(f"Note added to medical record {record_id}")
        return note

    def list_notes(self, user: CurrentUser, record_id: int) -> List[MedicalNoteDto]:
        record = self.get_record(user, record_id)
        return self.repo.list_notes(record.id)

    def create_prescription(self, user: CurrentUser, patient_id: str, medications: List[str], instructions: str,
                            start_date: datetime, end_date: datetime,
                            metadata: Optional[Dict[str, Any]] = None) -> PrescriptionDto:
        self._ensure_can_write(user)
        self._ensure_patient(patient_id)
        medications = [m.strip() for m in medications or [] if m and m.strip()]
        if not medications:
            raise HTTPException(status_code=400, detail="At least one medication is required")
        if end_date < start_date:
            raise HTTPException(status_code=400, detail="End date must not be before start date")

        prescription = self.repo.create_prescription(
            patient_id, user.id, medications, instructions or "", start_date, end_date, metadata or {}
        )
        logger.info(f"Prescription {prescription.id} created for patient {patient_id}")
        return prescription

    def search_medical_records(self, user: CurrentUser, patient_id: str, type: Optional[str] = None,
                               start_date: Optional[datetime] = None, end_date: Optional[datetime] = None,
                               doctor_id: Optional[str] = None) -> List[MedicalRecordDto]:
        self._ensure_can_access(user, patient_id)
        if type is not None and type not in RECORD_TYPES:
            raise HTTPException(status_code=400, detail="Invalid record type")
        if start_date and end_date and start_date > end_date:
            raise HTTPException(status_code=400, detail="Start date must be before end date")
        return self.repo.search_records(patient_id, type=type, start=start_date, end=end_date, doctor_id=doctor_id)

    def generate_medical_summary(self, user: CurrentUser, patient_id: str) -> Dict[str, Any]:
        self._ensure_can_access(user, patient_id)
        today = datetime.combine(self.now().date(), time.min)
        vital_signs = self.repo.search_records(patient_id, type="vital_signs", limit=1)
        return {
            "allergies": self.repo.search_records(patient_id, type="allergy"),
            "chronic_conditions": self.repo.search_records(patient_id, type="chronic_condition"),
            "current_medications": self.repo.list_prescriptions(patient_id, active_on=today),
            "recent_consultations": self.repo.search_records(patient_id, type="consultation", limit=5),
            "vaccinations": self.repo.search_records(patient_id, type="vaccination"),
            "latest_vital_signs": vital_signs[0] if vital_signs else None,
        }

    def get_medical_history(self, user: CurrentUser, patient_id: str) -> Dict[str, Any]:
        self._ensure_can_access(user, patient_id)
        return {
            "records": self.repo.search_records(patient_id),
            "prescriptions": self.repo.list_prescriptions(patient_id),
            "summary": self.generate_medical_summary(user, patient_id),
        }

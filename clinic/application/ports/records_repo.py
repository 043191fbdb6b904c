from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from datetime import datetime


@dataclass
class MedicalRecordDto:
    id: int
    patient_id: str
    doctor_id: Optional[str]
    type: str
    title: str
    description: str
    date: datetime
    metadata: Dict[str, Any]


@dataclass
class MedicalNoteDto:
    id: int
    record_id: int
    doctor_id: Optional[str]
    content: str
    metadata: Dict[str, Any]
    created_at: datetime


@dataclass
class PrescriptionDto:
    id: int
    patient_id: str
    doctor_id: Optional[str]
    medications: List[str]
    instructions: str
    start_date: datetime
    end_date: datetime
    metadata: Dict[str, Any]


class MedicalRecordsRepository:
    def create_record(self, patient_id: str, doctor_id: Optional[str], type: str, title: str, description: str,
                      date: datetime, metadata: Dict[str, Any]) -> MedicalRecordDto:
        ...

    def get_record(self, record_id: int) -> Optional[MedicalRecordDto]:
        ...

    def search_records(self, patient_id: str, type: Optional[str] = None, start: Optional[datetime] = None,
                       end: Optional[datetime] = None, doctor_id: Optional[str] = None,
                       limit: Optional[int] = None) -> List[MedicalRecordDto]:
        """Records of the patient matching every given criterion, newest first."""
        ...

    def add_note(self, record_id: int, doctor_id: Optional[str], content: str, metadata: Dict[str, Any]) -> MedicalNoteDto:
        ...

    def list_notes(self, record_id: int) -> List[MedicalNoteDto]:
        ...

    def create_prescription(self, patient_id: str, doctor_id: Optional[str], medications: List[str], instructions: str,
                            start_date: datetime, end_date: datetime, metadata: Dict[str, Any]) -> PrescriptionDto:
        ...

    def list_prescriptions(self, patient_id: str, active_on: Optional[datetime] = None) -> List[PrescriptionDto]:
        ...

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
import logging
from datetime import datetime

from ..application.ports.user_repo import CurrentUser
from ..application.services.medical_record_service import MedicalRecordService
from ..schemas.records.medical_record import (
    MedicalRecordCreate,
    MedicalNoteCreate,
    PrescriptionCreate,
    MedicalRecordResponse,
    MedicalNoteResponse,
    PrescriptionResponse,
    MedicalSummaryResponse,
    MedicalHistoryResponse,
)
from ..security import get_current_user
from .deps import get_medical_record_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/medical-records", tags=["Medical records"])


@router.post("/", response_model=MedicalRecordResponse, status_code=201)
def create_record(
    data: MedicalRecordCreate,
    current_user: CurrentUser = Depends(get_current_user),
    records: MedicalRecordService = Depends(get_medical_record_service),
):
    try:
        record = records.create_medical_record(
            current_user, data.patient_id, data.type, data.title, data.description, data.date, data.metadata
        )
        return MedicalRecordResponse.model_validate(record)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating medical record: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create medical record")


@router.post("/prescriptions", response_model=PrescriptionResponse, status_code=201)
def create_prescription(
    data: PrescriptionCreate,
    current_user: CurrentUser = Depends(get_current_user),
    records: MedicalRecordService = Depends(get_medical_record_service),
):
    try:
        prescription = records.create_prescription(
            current_user, data.patient_id, data.medications, data.instructions,
            data.start_date, data.end_date, data.metadata,
        )
        return PrescriptionResponse.model_validate(prescription)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating prescription: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create prescription")


@router.get("/patients/{patient_id}", response_model=List[MedicalRecordResponse])
def search_records(
    patient_id: str,
    type: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    doctor_id: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    records: MedicalRecordService = Depends(get_medical_record_service),
):
    found = records.search_medical_records(current_user, patient_id, type, start_date, end_date, doctor_id)
    return [MedicalRecordResponse.model_validate(r) for r in found]


@router.get("/patients/{patient_id}/history", response_model=MedicalHistoryResponse)
def medical_history(
    patient_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    records: MedicalRecordService = Depends(get_medical_record_service),
):
    return MedicalHistoryResponse.model_validate(records.get_medical_history(current_user, patient_id))


@router.get("/patients/{patient_id}/summary", response_model=MedicalSummaryResponse)
def medical_summary(
    patient_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    records: MedicalRecordService = Depends(get_medical_record_service),
):
    return MedicalSummaryResponse.model_validate(records.generate_medical_summary(current_user, patient_id))


@router.get("/{record_id}", response_model=MedicalRecordResponse)
def get_record(
    record_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    records: MedicalRecordService = Depends(get_medical_record_service),
):
    return MedicalRecordResponse.model_validate(records.get_record(current_user, record_id))


@router.get("/{record_id}/notes", response_model=List[MedicalNoteResponse])
def list_notes(
    record_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    records: MedicalRecordService = Depends(get_medical_record_service),
):
    return [MedicalNoteResponse.model_validate(n) for n in records.list_notes(current_user, record_id)]


@router.post("/{record_id}/notes", response_model=MedicalNoteResponse, status_code=201)
def add_note(
    record_id: int,
    data: MedicalNoteCreate,
    current_user: CurrentUser = Depends(get_current_user),
    records: MedicalRecordService = Depends(get_medical_record_service),
):
    return MedicalNoteResponse.model_validate(records.add_medical_note(current_user, record_id, data.content, data.metadata))

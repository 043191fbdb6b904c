from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
import logging

from ..application.ports.user_repo import CurrentUser
from ..application.services.medical_service_manager import MedicalServiceManager
from ..schemas.common.common import MessageResponse
from ..schemas.services.service import ServiceCreate, ServiceUpdate, ServiceResponse, ServiceStatistics
from ..security import require_admin
from .deps import get_service_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["Medical services"])


@router.get("/", response_model=List[ServiceResponse])
def list_services(
    category: Optional[str] = None,
    manager: MedicalServiceManager = Depends(get_service_manager),
):
    services = manager.list_by_category(category) if category else manager.list_active()
    return [ServiceResponse.model_validate(s) for s in services]


@router.get("/search", response_model=List[ServiceResponse])
def search_services(q: str, manager: MedicalServiceManager = Depends(get_service_manager)):
    return [ServiceResponse.model_validate(s) for s in manager.search(q)]


@router.get("/statistics", response_model=ServiceStatistics)
def service_statistics(
    current_user: CurrentUser = Depends(require_admin),
    manager: MedicalServiceManager = Depends(get_service_manager),
):
    return ServiceStatistics(**manager.statistics())


@router.get("/doctor/{doctor_id}", response_model=List[ServiceResponse])
def services_by_doctor(doctor_id: int, manager: MedicalServiceManager = Depends(get_service_manager)):
    return [ServiceResponse.model_validate(s) for s in manager.list_by_doctor(doctor_id)]


@router.get("/{service_id}", response_model=ServiceResponse)
def get_service(service_id: int, manager: MedicalServiceManager = Depends(get_service_manager)):
    return ServiceResponse.model_validate(manager.get(service_id))


@router.post("/", response_model=ServiceResponse, status_code=201)
def create_service(
    data: ServiceCreate,
    current_user: CurrentUser = Depends(require_admin),
    manager: MedicalServiceManager = Depends(get_service_manager),
):
    try:
        service = manager.create(data.name, data.description, data.duration, data.price, data.category, data.doctor_ids)
        return ServiceResponse.model_validate(service)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating service: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create service")


@router.put("/{service_id}", response_model=ServiceResponse)
def update_service(
    service_id: int,
    data: ServiceUpdate,
    current_user: CurrentUser = Depends(require_admin),
    manager: MedicalServiceManager = Depends(get_service_manager),
):
    try:
        return ServiceResponse.model_validate(manager.update(service_id, **data.model_dump(exclude_unset=True)))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating service {service_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update service")


@router.delete("/{service_id}", response_model=MessageResponse)
def delete_service(
    service_id: int,
    current_user: CurrentUser = Depends(require_admin),
    manager: MedicalServiceManager = Depends(get_service_manager),
):
    manager.delete(service_id)
    return MessageResponse(message="Service deleted")


@router.put("/{service_id}/toggle", response_model=ServiceResponse)
def toggle_service(
    service_id: int,
    current_user: CurrentUser = Depends(require_admin),
    manager: MedicalServiceManager = Depends(get_service_manager),
):
    return ServiceResponse.model_validate(manager.toggle_active(service_id))


@router.post("/{service_id}/doctors/{doctor_id}", response_model=ServiceResponse)
def assign_doctor(
    service_id: int,
    doctor_id: int,
    current_user: CurrentUser = Depends(require_admin),
    manager: MedicalServiceManager = Depends(get_service_manager),
):
    return ServiceResponse.model_validate(manager.assign_doctor(service_id, doctor_id))


@router.delete("/{service_id}/doctors/{doctor_id}", response_model=ServiceResponse)
def remove_doctor(
    service_id: int,
    doctor_id: int,
    current_user: CurrentUser = Depends(require_admin),
    manager: MedicalServiceManager = Depends(get_service_manager),
):
    return ServiceResponse.model_validate(manager.remove_doctor(service_id, doctor_id))

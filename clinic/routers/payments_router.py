from typing import List
from fastapi import APIRouter, Depends, HTTPException
import logging

from ..application.ports.user_repo import CurrentUser
from ..application.services.payment_service import PaymentService
from ..schemas.payments.payment import (
    PaymentCreate,
    RefundRequest,
    PaymentMethodResponse,
    AmountResponse,
    PaymentResponse,
    PaymentResultResponse,
)
from ..security import get_current_user, require_admin
from .deps import get_payment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("/methods", response_model=List[PaymentMethodResponse])
def payment_methods(payments: PaymentService = Depends(get_payment_service)):
    return [PaymentMethodResponse(**m) for m in payments.get_payment_methods()]


@router.get("/amount/{appointment_id}", response_model=AmountResponse)
def appointment_amount(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    payments: PaymentService = Depends(get_payment_service),
):
    return AmountResponse(**payments.quote(current_user, appointment_id))


@router.post("/", response_model=PaymentResultResponse, status_code=201)
def process_payment(
    data: PaymentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    payments: PaymentService = Depends(get_payment_service),
):
    try:
        result = payments.process_payment(current_user, data.appointment_id, data.method, data.details)
        return PaymentResultResponse.model_validate(result)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error processing payment for appointment {data.appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to process payment")


@router.get("/{payment_id}", response_model=PaymentResultResponse)
def get_payment(
    payment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    payments: PaymentService = Depends(get_payment_service),
):
    return PaymentResultResponse.model_validate(payments.get_payment(current_user, payment_id))


@router.put("/{payment_id}/confirm", response_model=PaymentResponse)
def confirm_bank_transfer(
    payment_id: int,
    current_user: CurrentUser = Depends(require_admin),
    payments: PaymentService = Depends(get_payment_service),
):
    try:
        return PaymentResponse.model_validate(payments.confirm_bank_transfer(payment_id))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error confirming bank transfer {payment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to confirm payment")


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
def refund_payment(
    payment_id: int,
    data: RefundRequest,
    current_user: CurrentUser = Depends(require_admin),
    payments: PaymentService = Depends(get_payment_service),
):
    try:
        return PaymentResponse.model_validate(payments.refund_payment(payment_id, data.reason))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error refunding payment {payment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to refund payment")

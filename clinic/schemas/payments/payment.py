# clinic/schemas/payments/payment.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


class PaymentCreate(BaseModel):
    appointment_id: int
    method: str
    details: Dict[str, Any] = {}


class RefundRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class PaymentMethodResponse(BaseModel):
    code: str
    name: str
    enabled: bool
    fees: float


class Discount(BaseModel):
    type: str
    amount: float


class AmountResponse(BaseModel):
    price: float
    discounts: List[Discount]
    amount: float
    currency: str


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    appointment_id: int
    amount: float
    currency: str
    method: str
    status: str
    transaction_id: Optional[str] = None
    details: Dict[str, Any] = {}
    refund_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    created_at: datetime


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    number: str
    date: datetime
    due_date: datetime
    amount: float
    vat_rate: float
    vat_amount: float
    total_amount: float
    status: str


class PaymentResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment: PaymentResponse
    invoice: Optional[InvoiceResponse] = None

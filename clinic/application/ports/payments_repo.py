from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from datetime import datetime


@dataclass
class PaymentDto:
    id: int
    appointment_id: int
    amount: float
    currency: str
    method: str
    status: str
    transaction_id: Optional[str]
    details: Dict[str, Any]
    failure_reason: Optional[str]
    refund_reason: Optional[str]
    completed_at: Optional[datetime]
    refunded_at: Optional[datetime]
    created_at: datetime


@dataclass
class InvoiceDto:
    id: int
    payment_id: int
    number: str
    date: datetime
    due_date: datetime
    amount: float
    vat_rate: float
    vat_amount: float
    total_amount: float
    status: str


class PaymentsRepository:
    def get(self, payment_id: int) -> Optional[PaymentDto]:
        ...

    def list_for_appointment(self, appointment_id: int) -> List[PaymentDto]:
        ...

    def list_completed_between(self, start: datetime, end: datetime) -> List[PaymentDto]:
        ...

    def create(self, appointment_id: int, amount: float, currency: str, method: str, status: str,
               transaction_id: Optional[str], details: Dict[str, Any], completed_at: Optional[datetime]) -> PaymentDto:
        ...

    def update(self, payment_id: int, **fields) -> PaymentDto:
        ...

    def last_invoice_number(self) -> Optional[str]:
        ...

    def create_invoice(self, payment_id: int, number: str, date: datetime, due_date: datetime, amount: float,
                       vat_rate: float, vat_amount: float, total_amount: float, status: str) -> InvoiceDto:
        ...

    def get_invoice_for_payment(self, payment_id: int) -> Optional[InvoiceDto]:
        ...

    def set_invoice_status(self, invoice_id: int, status: str) -> None:
        ...

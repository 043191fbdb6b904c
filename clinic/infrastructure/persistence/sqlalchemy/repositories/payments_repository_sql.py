import json
from typing import Any, Dict, List, Optional
from datetime import datetime
from sqlmodel import Session, select

from .....db.models import Payment, Invoice
from .....application.ports.payments_repo import PaymentsRepository, PaymentDto, InvoiceDto


class SqlPaymentsRepository(PaymentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, p: Payment) -> PaymentDto:
        return PaymentDto(
            id=p.id,
            appointment_id=p.appointment_id,
            amount=p.amount,
            currency=p.currency,
            method=p.method,
            status=p.status,
            transaction_id=p.transaction_id,
            details=json.loads(p.details) if p.details else {},
            failure_reason=p.failure_reason,
            refund_reason=p.refund_reason,
            completed_at=p.completed_at,
            refunded_at=p.refunded_at,
            created_at=p.created_at,
        )

    def _invoice_to_dto(self, i: Invoice) -> InvoiceDto:
        return InvoiceDto(
            id=i.id,
            payment_id=i.payment_id,
            number=i.number,
            date=i.date,
            due_date=i.due_date,
            amount=i.amount,
            vat_rate=i.vat_rate,
            vat_amount=i.vat_amount,
            total_amount=i.total_amount,
            status=i.status,
        )

    def get(self, payment_id: int) -> Optional[PaymentDto]:
        p = self.session.get(Payment, payment_id)
        return self._to_dto(p) if p else None

    def list_for_appointment(self, appointment_id: int) -> List[PaymentDto]:
        rows = self.session.exec(
            select(Payment).where(Payment.appointment_id == appointment_id).order_by(Payment.created_at)
        ).all()
        return [self._to_dto(p) for p in rows]

    def list_completed_between(self, start: datetime, end: datetime) -> List[PaymentDto]:
        rows = self.session.exec(
            select(Payment)
            .where(Payment.status == "completed")
            .where(Payment.completed_at >= start)
            .where(Payment.completed_at < end)
        ).all()
        return [self._to_dto(p) for p in rows]

    def create(self, appointment_id: int, amount: float, currency: str, method: str, status: str,
               transaction_id: Optional[str], details: Dict[str, Any], completed_at: Optional[datetime]) -> PaymentDto:
        p = Payment(
            appointment_id=appointment_id,
            amount=amount,
            currency=currency,
            method=method,
            status=status,
            transaction_id=transaction_id,
            details=json.dumps(details),
            completed_at=completed_at,
        )
        self.session.add(p)
        self.session.commit()
        self.session.refresh(p)
        return self._to_dto(p)

    def update(self, payment_id: int, **fields) -> PaymentDto:
        p = self.session.get(Payment, payment_id)
        for key, value in fields.items():
            if key == "details":
                value = json.dumps(value)
            setattr(p, key, value)
        self.session.add(p)
        self.session.commit()
        self.session.refresh(p)
        return self._to_dto(p)

    def last_invoice_number(self) -> Optional[str]:
        i = self.session.exec(select(Invoice).order_by(Invoice.id.desc())).first()
        return i.number if i else None

    def create_invoice(self, payment_id: int, number: str, date: datetime, due_date: datetime, amount: float,
                       vat_rate: float, vat_amount: float, total_amount: float, status: str) -> InvoiceDto:
        i = Invoice(
            payment_id=payment_id,
            number=number,
            date=date,
            due_date=due_date,
            amount=amount,
            vat_rate=vat_rate,
            vat_amount=vat_amount,
            total_amount=total_amount,
            status=status,
        )
        self.session.add(i)
        self.session.commit()
        self.session.refresh(i)
        return self._invoice_to_dto(i)

    def get_invoice_for_payment(self, payment_id: int) -> Optional[InvoiceDto]:
        i = self.session.exec(select(Invoice).where(Invoice.payment_id == payment_id)).first()
        return self._invoice_to_dto(i) if i else None

    def set_invoice_status(self, invoice_id: int, status: str) -> None:
        i = self.session.get(Invoice, invoice_id)
        if not i:
            return
        i.status = status
        self.session.add(i)
        self.session.commit()

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, timedelta
from fastapi import HTTPException

from ...core.config import Settings, settings as default_settings
from ..ports.payments_repo import PaymentsRepository, PaymentDto, InvoiceDto
from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto
from ..ports.services_repo import MedicalServicesRepository
from ..ports.user_repo import CurrentUser
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("card", "bank_transfer", "cash")
METHOD_NAMES = {"card": "Card", "bank_transfer": "Bank transfer", "cash": "Cash"}


@dataclass
class PaymentResult:
    payment: PaymentDto
    invoice: InvoiceDto


def _reference(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16].upper()}"


@dataclass
class PaymentService:
    repo: PaymentsRepository
    appointments: AppointmentsRepository
    services: MedicalServicesRepository
    notifier: NotificationService
    config: Settings = field(default_factory=lambda: default_settings)
    now: Callable[[], datetime] = datetime.now

    def get_payment_methods(self) -> List[Dict[str, Any]]:
        return [
            {
                "code": method,
                "name": METHOD_NAMES[method],
                "enabled": self.config.payment_method_enabled(method),
                "fees": self.config.payment_method_fees(method),
            }
            for method in PAYMENT_METHODS
        ]

    def _appointment(self, appointment_id: int) -> AppointmentDto:
        appt = self.appointments.get_by_id(appointment_id)
        if not appt:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appt

    def _ensure_access(self, user: CurrentUser, appt: AppointmentDto) -> None:
        if not (user.is_admin or appt.patient_id == user.id):
            raise HTTPException(status_code=404, detail="Appointment not found")

    def calculate_amount(self, appointment: AppointmentDto) -> Dict[str, Any]:
        """Price of the appointment's service after discounts."""
        service = self.services.get(appointment.service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        price = float(service.price)
        discounts = []
        completed = self.appointments.count_completed_for_patient(appointment.patient_id)
        if completed >= self.config.LOYALTY_MIN_COMPLETED:
            discounts.append({"type": "loyalty", "amount": round(price * self.config.LOYALTY_DISCOUNT_RATE, 2)})

        total_discount = sum(d["amount"] for d in discounts)
        return {
            "price": price,
            "discounts": discounts,
            "amount": round(max(price - total_discount, 0.0), 2),
            "currency": self.config.CURRENCY,
        }

    def quote(self, user: CurrentUser, appointment_id: int) -> Dict[str, Any]:
        appt = self._appointment(appointment_id)
        self._ensure_access(user, appt)
        return self.calculate_amount(appt)

    def _validate_method(self, method: str) -> None:
        if method not in PAYMENT_METHODS:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid payment method. Allowed methods: {', '.join(PAYMENT_METHODS)}",
            )
        if not self.config.payment_method_enabled(method):
            raise HTTPException(status_code=400, detail=f"Payment method {method} is currently disabled")

    def process_payment(self, user: CurrentUser, appointment_id: int, method: str,
                        details: Optional[Dict[str, Any]] = None) -> PaymentResult:
        details = details or {}
        self._validate_method(method)
        appt = self._appointment(appointment_id)
        self._ensure_access(user, appt)
        if appt.status == "cancelled":
            raise HTTPException(status_code=400, detail="Cannot pay for a cancelled appointment")
        if any(p.status in ("pending", "completed") for p in self.repo.list_for_appointment(appointment_id)):
            raise HTTPException(status_code=400, detail="This appointment already has a payment")

        amount = self.calculate_amount(appt)["amount"]
        now = self.now()

        if method == "card":
            token = details.get("token")
            if not token:
                raise HTTPException(status_code=400, detail="Card token is required")
            status, transaction_id, completed_at = "completed", _reference("TRANS"), now
            stored = {"card_last4": str(token)[-4:]}
        elif method == "bank_transfer":
            transaction_id = _reference("BT")
            status, completed_at = "pending", None
            stored = {
                "reference": transaction_id,
                "bank_name": self.config.BANK_NAME,
                "iban": self.config.BANK_IBAN,
                "bic": self.config.BANK_BIC,
            }
        else:
            status, transaction_id, completed_at = "completed", _reference("CASH"), now
            stored = {}

        payment = self.repo.create(
            appointment_id, amount, self.config.CURRENCY, method, status, transaction_id, stored, completed_at
        )
        invoice = self.generate_invoice(payment)
        self.notifier.send_payment_confirmation(appt.patient_id, payment)
        logger.info(f"Payment {payment.id} ({method}, {status}) recorded for appointment {appointment_id}")
        return PaymentResult(payment=payment, invoice=invoice)

    def _payment(self, payment_id: int) -> PaymentDto:
        payment = self.repo.get(payment_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")
        return payment

    def confirm_bank_transfer(self, payment_id: int) -> PaymentDto:
        payment = self._payment(payment_id)
        if payment.method != "bank_transfer" or payment.status != "pending":
            raise HTTPException(status_code=400, detail="Only pending bank transfers can be confirmed")

        payment = self.repo.update(payment_id, status="completed", completed_at=self.now())
        invoice = self.repo.get_invoice_for_payment(payment_id)
        if invoice:
            self.repo.set_invoice_status(invoice.id, "paid")
        appt = self.appointments.get_by_id(payment.appointment_id)
        if appt:
            self.notifier.send_payment_confirmation(appt.patient_id, payment)
        logger.info(f"Bank transfer {payment_id} confirmed")
        return payment

    def refund_payment(self, payment_id: int, reason: str) -> PaymentDto:
        payment = self._payment(payment_id)
        if payment.status != "completed":
            raise HTTPException(status_code=400, detail="Only completed payments can be refunded")

        payment = self.repo.update(payment_id, status="refunded", refund_reason=reason, refunded_at=self.now())
        invoice = self.repo.get_invoice_for_payment(payment_id)
        if invoice:
            self.repo.set_invoice_status(invoice.id, "refunded")
        appt = self.appointments.get_by_id(payment.appointment_id)
        if appt:
            self.notifier.send_refund_confirmation(appt.patient_id, payment)
        logger.info(f"Payment {payment_id} refunded")
        return payment

    def next_invoice_number(self) -> str:
        last = self.repo.last_invoice_number()
        sequence = int(last[-5:]) + 1 if last else 1
        return f"{self.now().year}{sequence:05d}"

    def generate_invoice(self, payment: PaymentDto) -> InvoiceDto:
        issued = self.now()
        vat_rate = self.config.VAT_RATE
        vat_amount = round(payment.amount * vat_rate, 2)
        return self.repo.create_invoice(
            payment_id=payment.id,
            number=self.next_invoice_number(),
            date=issued,
            due_date=issued + timedelta(days=self.config.INVOICE_DUE_DAYS),
            amount=payment.amount,
            vat_rate=vat_rate,
            vat_amount=vat_amount,
            total_amount=round(payment.amount + vat_amount, 2),
            status="paid" if payment.status == "completed" else "pending",
        )

    def get_payment(self, user: CurrentUser, payment_id: int) -> PaymentResult:
        payment = self._payment(payment_id)
        appt = self._appointment(payment.appointment_id)
        if not (user.is_admin or appt.patient_id == user.id):
            raise HTTPException(status_code=404, detail="Payment not found")
        return PaymentResult(payment=payment, invoice=self.repo.get_invoice_for_payment(payment_id))

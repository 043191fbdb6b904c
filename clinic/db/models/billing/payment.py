# clinic/db/models/billing/payment.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class Payment(SQLModel, table=True):
    __tablename__ = "payments"
    id: Optional[int] = Field(default=None, primary_key=True)
    appointment_id: int = Field(foreign_key="appointments.id", index=True)
    amount: float
    currency: str = Field(default="EUR", max_length=3)
    method: str  # card | bank_transfer | cash
    status: str = Field(default="pending", index=True)
    transaction_id: Optional[str] = None
    details: Optional[str] = None  # JSON
    failure_reason: Optional[str] = None
    refund_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.now)

# clinic/db/models/billing/invoice.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class Invoice(SQLModel, table=True):
    __tablename__ = "invoices"
    id: Optional[int] = Field(default=None, primary_key=True)
    payment_id: int = Field(foreign_key="payments.id", index=True)
    number: str = Field(unique=True, index=True)
    date: datetime = Field(default_factory=datetime.now)
    due_date: datetime
    amount: float
    vat_rate: float
    vat_amount: float
    total_amount: float
    status: str = Field(default="pending")  # paid | pending | refunded

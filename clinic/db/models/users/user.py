# clinic/db/models/users/user.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
import uuid

class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str = Field(max_length=100)
    email: Optional[str] = Field(max_length=100, default=None, index=True)
    phone: Optional[str] = Field(max_length=20, default=None)
    role: str = Field(default="patient", max_length=20)  # patient | doctor | admin
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.now)

    # Relationships
    appointments: List["Appointment"] = Relationship(back_populates="patient")
    notifications: List["Notification"] = Relationship(back_populates="user")

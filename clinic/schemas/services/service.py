# clinic/schemas/services/service.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = ""
    duration: int = Field(default=30, gt=0)
    price: float = Field(default=0.0, ge=0)
    category: Optional[str] = None
    doctor_ids: List[int] = []


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None


class ServiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: str
    duration: int
    price: float
    category: Optional[str] = None
    is_active: bool
    doctor_ids: List[int] = []


class ServiceStatistics(BaseModel):
    total: int
    active: int
    inactive: int
    average_price: float
    by_category: Dict[str, int]

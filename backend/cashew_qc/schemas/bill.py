"""
Bill schemas.
"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from decimal import Decimal


class Bill(BaseModel):
    id: int
    bill_number: Optional[str] = Field(default=None, max_length=20)
    seller: Optional[str] = Field(default=None, max_length=255)
    buyer: Optional[str] = Field(default=None, max_length=255)
    # Weight of one empty jute bag (kg)
    w_jute_bag: Optional[Decimal] = Field(default=Decimal("1.00"), gt=0, le=Decimal("99.99"))
    # Dunnage/dribag packing material per container (kg)
    w_dunnage_dribag: Optional[int] = Field(default=None, ge=0)
    net_on_bl: Optional[int] = Field(default=None, ge=0)
    quantity_of_bags_on_bl: Optional[int] = Field(default=None, ge=0)
    origin: Optional[str] = None
    inspection_start_date: Optional[datetime] = None
    inspection_end_date: Optional[datetime] = None
    inspection_location: Optional[str] = None
    sampling_ratio: Optional[Decimal] = Field(default=Decimal("10.00"), ge=0, le=100)
    note: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True

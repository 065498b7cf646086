"""
Container schemas.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from decimal import Decimal
import enum
import re

CONTAINER_NUMBER_PATTERN = re.compile(r"^[A-Z]{4}[0-9]{7}$")


class ContainerCondition(str, enum.Enum):
    INTACT = "Intact"
    DAMAGED = "Damaged"
    SLIGHTLY_DAMAGED = "Slightly Damaged"
    SEVERELY_DAMAGED = "Severely Damaged"


class SealCondition(str, enum.Enum):
    INTACT = "Intact"
    BROKEN = "Broken"
    MISSING = "Missing"
    TAMPERED = "Tampered"


class Container(BaseModel):
    id: int
    bill_id: int
    truck: Optional[str] = Field(default=None, max_length=20)
    container_number: Optional[str] = None
    quantity_of_bags: Optional[int] = Field(default=None, ge=0, le=2000)

    # Weighbridge readings (kg)
    w_total: Optional[Decimal] = Field(default=None, ge=0)
    w_truck: Optional[Decimal] = Field(default=None, ge=0)
    w_container: Optional[Decimal] = Field(default=None, ge=0)

    # Stored derived weights (kg); may be stale or hand-entered
    w_gross: Optional[Decimal] = Field(default=None, ge=0)
    w_tare: Optional[Decimal] = Field(default=None, ge=0)
    w_net: Optional[Decimal] = Field(default=None, ge=0)

    container_condition: Optional[ContainerCondition] = None
    seal_condition: Optional[SealCondition] = None
    note: Optional[str] = None

    @field_validator("container_number")
    @classmethod
    def check_container_number(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if not CONTAINER_NUMBER_PATTERN.match(value):
            raise ValueError("Container number must be 4 uppercase letters followed by 7 digits")
        return value

    class Config:
        from_attributes = True
        frozen = True


class DerivedWeights(BaseModel):
    w_gross: Optional[Decimal] = None
    w_tare: Optional[Decimal] = None
    w_net: Optional[Decimal] = None

    class Config:
        frozen = True

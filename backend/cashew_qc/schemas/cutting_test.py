"""
Cutting test schemas.
"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional
from decimal import Decimal
import enum


class CuttingTestType(int, enum.Enum):
    FINAL_FIRST_CUT = 1
    FINAL_SECOND_CUT = 2
    FINAL_THIRD_CUT = 3
    CONTAINER_CUT = 4

    @property
    def is_final_sample(self) -> bool:
        return self in FINAL_SAMPLE_TYPES

    @property
    def is_container_test(self) -> bool:
        return self is CuttingTestType.CONTAINER_CUT


FINAL_SAMPLE_TYPES = (
    CuttingTestType.FINAL_FIRST_CUT,
    CuttingTestType.FINAL_SECOND_CUT,
    CuttingTestType.FINAL_THIRD_CUT,
)


class CuttingTest(BaseModel):
    id: int
    bill_id: int
    container_id: Optional[int] = None
    type: CuttingTestType
    moisture: Optional[Decimal] = Field(default=None, ge=0, le=100)
    # All weights in grams
    sample_weight: Optional[int] = Field(default=None, gt=0, le=65535)
    nut_count: Optional[int] = Field(default=None, ge=0, le=65535)
    w_reject_nut: Optional[int] = Field(default=None, ge=0, le=65535)
    w_defective_nut: Optional[int] = Field(default=None, ge=0, le=65535)
    w_defective_kernel: Optional[int] = Field(default=None, ge=0, le=65535)
    w_good_kernel: Optional[int] = Field(default=None, ge=0, le=65535)
    w_sample_after_cut: Optional[int] = Field(default=None, ge=0, le=65535)
    # lbs of kernel per 80kg of raw nuts
    outturn_rate: Optional[Decimal] = Field(default=None, ge=0, le=60)
    note: Optional[str] = None

    @model_validator(mode="after")
    def check_type_matches_container(self) -> "CuttingTest":
        if self.type.is_final_sample and self.container_id is not None:
            raise ValueError("Final sample tests cannot be associated with a container.")
        if self.type.is_container_test and self.container_id is None:
            raise ValueError("Container tests must be associated with a container.")
        return self

    @property
    def is_final_sample(self) -> bool:
        return self.type.is_final_sample

    @property
    def is_container_test(self) -> bool:
        return self.type.is_container_test

    class Config:
        from_attributes = True
        frozen = True


class DefectiveRatio(BaseModel):
    defective_nut: int
    defective_kernel: int
    ratio: Decimal
    formatted: str

"""
Validation alert schemas.
"""
from pydantic import BaseModel
from typing import Optional
from decimal import Decimal
import enum


class AlertSeverity(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AlertCategory(str, enum.Enum):
    MISSING_DATA = "missing_data"
    DISCREPANCY = "discrepancy"
    LOGICAL = "logical"
    WEIGHT = "weight"
    MOISTURE = "moisture"
    RATIO = "ratio"
    CALCULATION = "calculation"


class Alert(BaseModel):
    severity: AlertSeverity
    category: AlertCategory
    message: str
    field: str
    observed_value: Optional[Decimal] = None
    threshold: Optional[Decimal] = None

    class Config:
        frozen = True


class AlertCounts(BaseModel):
    total: int = 0
    info: int = 0
    warning: int = 0
    error: int = 0
    entities_with_alerts: int = 0

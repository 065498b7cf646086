"""
Request/response schemas for single-record evaluation and batch audit endpoints.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from decimal import Decimal

from cashew_qc.schemas.alert import Alert
from cashew_qc.schemas.audit_report import AuditReport
from cashew_qc.schemas.bill import Bill
from cashew_qc.schemas.container import Container, DerivedWeights
from cashew_qc.schemas.cutting_test import CuttingTest, DefectiveRatio
from cashew_qc.schemas.dataset import RejectedRow


class ContainerEvaluationRequest(BaseModel):
    bill: Bill
    container: Container


class ContainerEvaluationResponse(BaseModel):
    derived: DerivedWeights
    calculation_status: Dict[str, str]
    alerts: List[Alert] = Field(default_factory=list)


class CuttingTestEvaluationRequest(BaseModel):
    cutting_test: CuttingTest


class CuttingTestEvaluationResponse(BaseModel):
    outturn_rate: Optional[Decimal] = None
    derived_outturn_rate: Optional[Decimal] = None
    defective_ratio: Optional[DefectiveRatio] = None
    alerts: List[Alert] = Field(default_factory=list)


class MoistureDistributionRequest(BaseModel):
    cutting_tests: List[CuttingTest] = Field(default_factory=list)


class UploadAuditResponse(BaseModel):
    filename: str
    report: AuditReport
    rejected_rows: List[RejectedRow] = Field(default_factory=list)

"""
Aggregate and audit report schemas.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from decimal import Decimal

from cashew_qc.schemas.alert import Alert, AlertCounts
from cashew_qc.schemas.container import DerivedWeights
from cashew_qc.schemas.cutting_test import CuttingTestType, DefectiveRatio


class MoistureBuckets(BaseModel):
    low: int = 0       # <= 8%
    medium: int = 0    # 8-11%
    high: int = 0      # > 11%


class MoistureDistribution(BaseModel):
    total: int = 0
    avg_moisture: Optional[Decimal] = None
    min_moisture: Optional[Decimal] = None
    max_moisture: Optional[Decimal] = None
    buckets: MoistureBuckets = Field(default_factory=MoistureBuckets)


class ContainerResult(BaseModel):
    container_id: int
    bill_id: int
    container_number: Optional[str] = None
    truck: Optional[str] = None
    derived: DerivedWeights
    calculation_status: Dict[str, str]
    average_moisture: Optional[Decimal] = None
    outturn_rate: Optional[Decimal] = None
    alerts: List[Alert] = Field(default_factory=list)


class CuttingTestResult(BaseModel):
    cutting_test_id: int
    bill_id: int
    container_id: Optional[int] = None
    type: CuttingTestType
    moisture: Optional[Decimal] = None
    outturn_rate: Optional[Decimal] = None
    defective_ratio: Optional[DefectiveRatio] = None
    alerts: List[Alert] = Field(default_factory=list)


class BillSummary(BaseModel):
    bill_id: int
    bill_number: Optional[str] = None
    seller: Optional[str] = None
    buyer: Optional[str] = None
    container_count: int = 0
    total_net_weight: Optional[Decimal] = None
    average_outturn: Optional[Decimal] = None
    average_moisture: Optional[Decimal] = None
    missing_final_cuts: List[CuttingTestType] = Field(default_factory=list)


class BillStats(BaseModel):
    total: int = 0
    pending_final_tests: int = 0
    missing_final_samples: int = 0


class ContainerStats(BaseModel):
    high_moisture: int = 0
    pending_tests: int = 0
    with_alerts: int = 0


class CuttingTestStats(BaseModel):
    high_moisture: int = 0
    with_alerts: int = 0
    moisture_distribution: MoistureDistribution = Field(default_factory=MoistureDistribution)


class DashboardStats(BaseModel):
    bills: BillStats = Field(default_factory=BillStats)
    containers: ContainerStats = Field(default_factory=ContainerStats)
    cutting_tests: CuttingTestStats = Field(default_factory=CuttingTestStats)


class AuditReport(BaseModel):
    bills: List[BillSummary] = Field(default_factory=list)
    containers: List[ContainerResult] = Field(default_factory=list)
    cutting_tests: List[CuttingTestResult] = Field(default_factory=list)
    alert_counts: AlertCounts = Field(default_factory=AlertCounts)
    dashboard: DashboardStats = Field(default_factory=DashboardStats)
    summary: Dict[str, Any] = Field(default_factory=dict)

from .bill import Bill
from .container import Container, ContainerCondition, SealCondition, DerivedWeights
from .cutting_test import CuttingTest, CuttingTestType, DefectiveRatio, FINAL_SAMPLE_TYPES
from .alert import Alert, AlertSeverity, AlertCategory, AlertCounts
from .dataset import InspectionDataset, RejectedRow
from .audit_report import (
    MoistureBuckets,
    MoistureDistribution,
    ContainerResult,
    CuttingTestResult,
    BillSummary,
    BillStats,
    ContainerStats,
    CuttingTestStats,
    DashboardStats,
    AuditReport,
)

__all__ = [
    "Bill",
    "Container",
    "ContainerCondition",
    "SealCondition",
    "DerivedWeights",
    "CuttingTest",
    "CuttingTestType",
    "DefectiveRatio",
    "FINAL_SAMPLE_TYPES",
    "Alert",
    "AlertSeverity",
    "AlertCategory",
    "AlertCounts",
    "InspectionDataset",
    "RejectedRow",
    "MoistureBuckets",
    "MoistureDistribution",
    "ContainerResult",
    "CuttingTestResult",
    "BillSummary",
    "BillStats",
    "ContainerStats",
    "CuttingTestStats",
    "DashboardStats",
    "AuditReport",
]

"""
Single-record evaluation API endpoints.

Entry forms call these for live feedback while a record is being edited, so
the server-side report and the form show the same derived values and alerts.
"""
import logging
from fastapi import APIRouter

from cashew_qc.schemas.audit_report import MoistureDistribution
from cashew_qc.schemas.evaluation import (
    ContainerEvaluationRequest,
    ContainerEvaluationResponse,
    CuttingTestEvaluationRequest,
    CuttingTestEvaluationResponse,
    MoistureDistributionRequest,
)
from cashew_qc.services.aggregation import moisture_distribution
from cashew_qc.services.outturn_engine import defective_ratio, derive_test_outturn_rate, effective_outturn_rate
from cashew_qc.services.validation_engine import evaluate_container_alerts, evaluate_cutting_test_alerts
from cashew_qc.services.weight_engine import calculation_status, derive_container_weights

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/containers/evaluate", response_model=ContainerEvaluationResponse)
async def evaluate_container(request: ContainerEvaluationRequest):
    """Derive weights for a container and run its alert rules."""
    if request.container.bill_id != request.bill.id:
        logger.warning(
            "Container %s evaluated against bill %s but belongs to bill %s",
            request.container.id,
            request.bill.id,
            request.container.bill_id,
        )
    weights = derive_container_weights(request.container, request.bill)
    return ContainerEvaluationResponse(
        derived=weights,
        calculation_status=calculation_status(weights),
        alerts=evaluate_container_alerts(request.container, request.bill, weights),
    )


@router.post("/cutting-tests/evaluate", response_model=CuttingTestEvaluationResponse)
async def evaluate_cutting_test(request: CuttingTestEvaluationRequest):
    """Derive outturn and defective ratio for a cutting test and run its alert rules."""
    test = request.cutting_test
    return CuttingTestEvaluationResponse(
        outturn_rate=effective_outturn_rate(test),
        derived_outturn_rate=derive_test_outturn_rate(test),
        defective_ratio=defective_ratio(test),
        alerts=evaluate_cutting_test_alerts(test),
    )


@router.post("/aggregates/moisture-distribution", response_model=MoistureDistribution)
async def get_moisture_distribution(request: MoistureDistributionRequest):
    return moisture_distribution(request.cutting_tests)

"""
Audit pipeline - derives weights and outturn, evaluates alerts, and builds
bill summaries and dashboard figures for a whole inspection dataset.
"""
from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, List, Optional
import time
import logging

import numpy as np
import pandas as pd

from cashew_qc.config.threshold_loader import Thresholds, get_thresholds
from cashew_qc.schemas.alert import Alert
from cashew_qc.schemas.audit_report import AuditReport, BillSummary, ContainerResult, CuttingTestResult
from cashew_qc.schemas.cutting_test import CuttingTest
from cashew_qc.schemas.dataset import InspectionDataset
from cashew_qc.services.aggregation import (
    alert_counts,
    average_container_moisture,
    average_moisture,
    bill_average_outturn,
    total_net_weight,
)
from cashew_qc.services.dashboard import build_dashboard_stats, missing_final_cut_types
from cashew_qc.services.outturn_engine import container_outturn_rate, defective_ratio, effective_outturn_rate
from cashew_qc.services.validation_engine import evaluate_container_alerts, evaluate_cutting_test_alerts
from cashew_qc.services.weight_engine import calculation_status, derive_container_weights


logger = logging.getLogger(__name__)


def _evaluate_containers(
    dataset: InspectionDataset,
    tests_by_container: Dict[int, List[CuttingTest]],
    t: Thresholds,
) -> List[ContainerResult]:
    bills = {bill.id: bill for bill in dataset.bills}
    results = []
    for container in dataset.containers:
        bill = bills[container.bill_id]
        own_tests = tests_by_container.get(container.id, [])
        weights = derive_container_weights(container, bill)
        results.append(
            ContainerResult(
                container_id=container.id,
                bill_id=container.bill_id,
                container_number=container.container_number,
                truck=container.truck,
                derived=weights,
                calculation_status=calculation_status(weights),
                average_moisture=average_container_moisture(container, own_tests),
                outturn_rate=container_outturn_rate(container, own_tests),
                alerts=evaluate_container_alerts(container, bill, weights, t),
            )
        )
    return results


def _evaluate_cutting_tests(dataset: InspectionDataset, t: Thresholds) -> List[CuttingTestResult]:
    return [
        CuttingTestResult(
            cutting_test_id=test.id,
            bill_id=test.bill_id,
            container_id=test.container_id,
            type=test.type,
            moisture=test.moisture,
            outturn_rate=effective_outturn_rate(test),
            defective_ratio=defective_ratio(test),
            alerts=evaluate_cutting_test_alerts(test, t),
        )
        for test in dataset.cutting_tests
    ]


def _summarize_bills(
    dataset: InspectionDataset,
    container_results: List[ContainerResult],
) -> List[BillSummary]:
    containers_by_bill: Dict[int, List[ContainerResult]] = defaultdict(list)
    for result in container_results:
        containers_by_bill[result.bill_id].append(result)
    tests_by_bill: Dict[int, List[CuttingTest]] = defaultdict(list)
    for test in dataset.cutting_tests:
        tests_by_bill[test.bill_id].append(test)

    summaries = []
    for bill in dataset.bills:
        bill_containers = containers_by_bill.get(bill.id, [])
        bill_tests = tests_by_bill.get(bill.id, [])
        summaries.append(
            BillSummary(
                bill_id=bill.id,
                bill_number=bill.bill_number,
                seller=bill.seller,
                buyer=bill.buyer,
                container_count=len(bill_containers),
                total_net_weight=total_net_weight(result.derived.w_net for result in bill_containers),
                average_outturn=bill_average_outturn(bill_tests),
                average_moisture=average_moisture(bill_tests),
                missing_final_cuts=missing_final_cut_types(bill, bill_tests),
            )
        )
    return summaries


def run_audit(dataset: InspectionDataset, thresholds: Optional[Thresholds] = None) -> AuditReport:
    """
    Run every derivation and alert rule over the dataset.

    Returns an AuditReport; nothing is persisted. The caller decides whether to
    write derived weights/outturn back to the record store.
    """
    t = thresholds or get_thresholds()
    timings: Dict[str, float] = {}
    overall_start = time.perf_counter()

    tests_by_container: Dict[int, List[CuttingTest]] = defaultdict(list)
    for test in dataset.cutting_tests:
        if test.container_id is not None:
            tests_by_container[test.container_id].append(test)

    container_start = time.perf_counter()
    container_results = _evaluate_containers(dataset, tests_by_container, t)
    timings["containers"] = round(time.perf_counter() - container_start, 3)

    test_start = time.perf_counter()
    test_results = _evaluate_cutting_tests(dataset, t)
    timings["cutting_tests"] = round(time.perf_counter() - test_start, 3)

    summary_start = time.perf_counter()
    bill_summaries = _summarize_bills(dataset, container_results)
    container_alerts = {result.container_id: result.alerts for result in container_results}
    test_alerts = {result.cutting_test_id: result.alerts for result in test_results}
    dashboard = build_dashboard_stats(dataset, container_alerts, test_alerts, t)
    counts = alert_counts([r.alerts for r in container_results] + [r.alerts for r in test_results])
    timings["summaries"] = round(time.perf_counter() - summary_start, 3)
    timings["total"] = round(time.perf_counter() - overall_start, 3)

    summary = {
        "bill_count": len(dataset.bills),
        "container_count": len(dataset.containers),
        "cutting_test_count": len(dataset.cutting_tests),
        "containers_with_net_weight": sum(1 for r in container_results if r.derived.w_net is not None),
        "timings": timings,
    }
    logger.info(
        "Audit completed bills=%d containers=%d tests=%d alerts=%d errors=%d timings=%s",
        summary["bill_count"],
        summary["container_count"],
        summary["cutting_test_count"],
        counts.total,
        counts.error,
        timings,
    )

    return AuditReport(
        bills=bill_summaries,
        containers=container_results,
        cutting_tests=test_results,
        alert_counts=counts,
        dashboard=dashboard,
        summary=summary,
    )


def containers_with_alerts(report: AuditReport) -> List[ContainerResult]:
    return [result for result in report.containers if result.alerts]


def cutting_tests_with_alerts(report: AuditReport) -> List[CuttingTestResult]:
    return [result for result in report.cutting_tests if result.alerts]


def _decimal_to_float(value: Optional[Decimal]) -> float:
    return float(value) if value is not None else np.nan


def _alert_rows(entity: str, entity_id: int, bill_id: int, alerts: List[Alert]) -> List[Dict[str, Any]]:
    return [
        {
            "entity": entity,
            "entity_id": entity_id,
            "bill_id": bill_id,
            "severity": alert.severity.value,
            "category": alert.category.value,
            "field": alert.field,
            "message": alert.message,
            "observed_value": _decimal_to_float(alert.observed_value),
            "threshold": _decimal_to_float(alert.threshold),
        }
        for alert in alerts
    ]


def report_to_frames(report: AuditReport) -> Dict[str, pd.DataFrame]:
    """Flatten an audit report into one DataFrame per sheet."""
    bills = pd.DataFrame(
        [
            {
                "bill_id": s.bill_id,
                "bill_number": s.bill_number or "",
                "seller": s.seller or "",
                "buyer": s.buyer or "",
                "container_count": s.container_count,
                "total_net_weight": _decimal_to_float(s.total_net_weight),
                "average_outturn": _decimal_to_float(s.average_outturn),
                "average_moisture": _decimal_to_float(s.average_moisture),
                "missing_final_cuts": ", ".join(str(cut.value) for cut in s.missing_final_cuts),
            }
            for s in report.bills
        ],
        columns=[
            "bill_id", "bill_number", "seller", "buyer", "container_count",
            "total_net_weight", "average_outturn", "average_moisture", "missing_final_cuts",
        ],
    )

    containers = pd.DataFrame(
        [
            {
                "container_id": r.container_id,
                "bill_id": r.bill_id,
                "container_number": r.container_number or "",
                "truck": r.truck or "",
                "w_gross": _decimal_to_float(r.derived.w_gross),
                "w_tare": _decimal_to_float(r.derived.w_tare),
                "w_net": _decimal_to_float(r.derived.w_net),
                "average_moisture": _decimal_to_float(r.average_moisture),
                "outturn_rate": _decimal_to_float(r.outturn_rate),
                "alert_count": len(r.alerts),
            }
            for r in report.containers
        ],
        columns=[
            "container_id", "bill_id", "container_number", "truck", "w_gross", "w_tare",
            "w_net", "average_moisture", "outturn_rate", "alert_count",
        ],
    )

    tests = pd.DataFrame(
        [
            {
                "cutting_test_id": r.cutting_test_id,
                "bill_id": r.bill_id,
                "container_id": r.container_id if r.container_id is not None else np.nan,
                "type": r.type.value,
                "moisture": _decimal_to_float(r.moisture),
                "outturn_rate": _decimal_to_float(r.outturn_rate),
                "defective_ratio": r.defective_ratio.formatted if r.defective_ratio else "",
                "alert_count": len(r.alerts),
            }
            for r in report.cutting_tests
        ],
        columns=[
            "cutting_test_id", "bill_id", "container_id", "type", "moisture",
            "outturn_rate", "defective_ratio", "alert_count",
        ],
    )

    alert_rows: List[Dict[str, Any]] = []
    for r in report.containers:
        alert_rows.extend(_alert_rows("container", r.container_id, r.bill_id, r.alerts))
    for r in report.cutting_tests:
        alert_rows.extend(_alert_rows("cutting_test", r.cutting_test_id, r.bill_id, r.alerts))
    alerts = pd.DataFrame(
        alert_rows,
        columns=[
            "entity", "entity_id", "bill_id", "severity", "category",
            "field", "message", "observed_value", "threshold",
        ],
    )

    return {"bills": bills, "containers": containers, "cutting_tests": tests, "alerts": alerts}

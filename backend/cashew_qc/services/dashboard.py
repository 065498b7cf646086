"""
Dashboard queries over an in-memory inspection dataset.

These mirror the dashboard widgets: high-moisture tests and containers,
containers still waiting for a cutting test, and bills whose final samples are
missing or incomplete.
"""
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set

from cashew_qc.config.threshold_loader import Thresholds, get_thresholds
from cashew_qc.schemas.alert import Alert
from cashew_qc.schemas.audit_report import BillStats, ContainerStats, CuttingTestStats, DashboardStats
from cashew_qc.schemas.bill import Bill
from cashew_qc.schemas.container import Container
from cashew_qc.schemas.cutting_test import CuttingTest, CuttingTestType, FINAL_SAMPLE_TYPES
from cashew_qc.schemas.dataset import InspectionDataset
from cashew_qc.services.aggregation import moisture_distribution


def tests_with_high_moisture(
    tests: Iterable[CuttingTest],
    threshold: Optional[Decimal] = None,
) -> List[CuttingTest]:
    """Tests above the moisture threshold, wettest first."""
    limit = threshold if threshold is not None else get_thresholds().moisture_high_filter
    flagged = [test for test in tests if test.moisture is not None and test.moisture > limit]
    return sorted(flagged, key=lambda test: test.moisture, reverse=True)


def containers_with_high_moisture(
    containers: Iterable[Container],
    tests: Iterable[CuttingTest],
    threshold: Optional[Decimal] = None,
) -> List[Container]:
    wet_container_ids = {
        test.container_id
        for test in tests_with_high_moisture(tests, threshold)
        if test.container_id is not None
    }
    return [container for container in containers if container.id in wet_container_ids]


def containers_pending_cutting_tests(
    containers: Iterable[Container],
    tests: Iterable[CuttingTest],
) -> List[Container]:
    tested_ids = {test.container_id for test in tests if test.container_id is not None}
    return [container for container in containers if container.id not in tested_ids]


def _final_cut_types_by_bill(tests: Iterable[CuttingTest]) -> Dict[int, Set[CuttingTestType]]:
    found: Dict[int, Set[CuttingTestType]] = {}
    for test in tests:
        if test.is_final_sample:
            found.setdefault(test.bill_id, set()).add(test.type)
    return found


def missing_final_cut_types(bill: Bill, tests: Iterable[CuttingTest]) -> List[CuttingTestType]:
    present = _final_cut_types_by_bill(tests).get(bill.id, set())
    return [cut_type for cut_type in FINAL_SAMPLE_TYPES if cut_type not in present]


def bills_pending_final_tests(bills: Iterable[Bill], tests: Iterable[CuttingTest]) -> List[Bill]:
    """Bills without any final sample at all."""
    found = _final_cut_types_by_bill(tests)
    return [bill for bill in bills if bill.id not in found]


def bills_missing_final_samples(
    bills: Iterable[Bill],
    containers: Iterable[Container],
    tests: Iterable[CuttingTest],
) -> List[Bill]:
    """Bills that already have containers but lack at least one of the three final cuts."""
    found = _final_cut_types_by_bill(tests)
    bills_with_containers = {container.bill_id for container in containers}
    return [
        bill
        for bill in bills
        if bill.id in bills_with_containers
        and any(cut_type not in found.get(bill.id, set()) for cut_type in FINAL_SAMPLE_TYPES)
    ]


def build_dashboard_stats(
    dataset: InspectionDataset,
    container_alerts: Optional[Dict[int, List[Alert]]] = None,
    test_alerts: Optional[Dict[int, List[Alert]]] = None,
    thresholds: Optional[Thresholds] = None,
) -> DashboardStats:
    t = thresholds or get_thresholds()
    container_alerts = container_alerts or {}
    test_alerts = test_alerts or {}

    return DashboardStats(
        bills=BillStats(
            total=len(dataset.bills),
            pending_final_tests=len(bills_pending_final_tests(dataset.bills, dataset.cutting_tests)),
            missing_final_samples=len(
                bills_missing_final_samples(dataset.bills, dataset.containers, dataset.cutting_tests)
            ),
        ),
        containers=ContainerStats(
            high_moisture=len(
                containers_with_high_moisture(dataset.containers, dataset.cutting_tests, t.moisture_high_filter)
            ),
            pending_tests=len(containers_pending_cutting_tests(dataset.containers, dataset.cutting_tests)),
            with_alerts=sum(1 for alerts in container_alerts.values() if alerts),
        ),
        cutting_tests=CuttingTestStats(
            high_moisture=len(tests_with_high_moisture(dataset.cutting_tests, t.moisture_high_filter)),
            with_alerts=sum(1 for alerts in test_alerts.values() if alerts),
            moisture_distribution=moisture_distribution(dataset.cutting_tests, t),
        ),
    )

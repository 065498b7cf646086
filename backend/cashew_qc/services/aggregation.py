"""
Aggregation - rolls derived values up across collections of cutting tests and alerts.

Averages ignore absent values and are absent themselves when nothing qualifies.
Moisture averages round to 1 place, outturn averages to 2 places.
"""
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from cashew_qc.config.threshold_loader import Thresholds, get_thresholds
from cashew_qc.schemas.alert import Alert, AlertCounts, AlertSeverity
from cashew_qc.schemas.audit_report import MoistureBuckets, MoistureDistribution
from cashew_qc.schemas.container import Container
from cashew_qc.schemas.cutting_test import CuttingTest
from cashew_qc.services.numeric import ONE_PLACE, TWO_PLACES, quantize
from cashew_qc.services.outturn_engine import effective_outturn_rate


def _mean(values: Sequence[Decimal]) -> Optional[Decimal]:
    if not values:
        return None
    return sum(values, Decimal("0")) / Decimal(len(values))


def _moisture_values(tests: Iterable[CuttingTest]) -> List[Decimal]:
    return [test.moisture for test in tests if test.moisture is not None]


def average_moisture(tests: Iterable[CuttingTest]) -> Optional[Decimal]:
    return quantize(_mean(_moisture_values(tests)), ONE_PLACE)


def average_outturn(samples: Iterable[CuttingTest]) -> Optional[Decimal]:
    """Average outturn of the given samples (normally a bill's final samples)."""
    rates = [rate for rate in (effective_outturn_rate(sample) for sample in samples) if rate is not None]
    return quantize(_mean(rates), TWO_PLACES)


def bill_average_outturn(tests: Iterable[CuttingTest]) -> Optional[Decimal]:
    """Average outturn over final samples only; container cuts are ignored."""
    return average_outturn(test for test in tests if test.is_final_sample)


def average_container_moisture(container: Container, tests: Iterable[CuttingTest]) -> Optional[Decimal]:
    return average_moisture(test for test in tests if test.container_id == container.id)


def moisture_distribution(
    tests: Iterable[CuttingTest],
    thresholds: Optional[Thresholds] = None,
) -> MoistureDistribution:
    """
    Histogram of recorded moisture values: low (<= 8%), medium (8-11%], high (> 11%).
    ``total`` counts tests with a moisture value, not every test passed in.
    """
    t = thresholds or get_thresholds()
    values = _moisture_values(tests)
    if not values:
        return MoistureDistribution()

    buckets = MoistureBuckets()
    for value in values:
        if value <= t.moisture_bucket_low_max:
            buckets.low += 1
        elif value <= t.moisture_bucket_medium_max:
            buckets.medium += 1
        else:
            buckets.high += 1

    return MoistureDistribution(
        total=len(values),
        avg_moisture=quantize(_mean(values), ONE_PLACE),
        min_moisture=min(values),
        max_moisture=max(values),
        buckets=buckets,
    )


def alert_counts(alert_lists: Iterable[List[Alert]]) -> AlertCounts:
    """Count alerts per severity across entities, one list per entity."""
    counts = AlertCounts()
    for alerts in alert_lists:
        if alerts:
            counts.entities_with_alerts += 1
        for alert in alerts:
            counts.total += 1
            if alert.severity == AlertSeverity.INFO:
                counts.info += 1
            elif alert.severity == AlertSeverity.WARNING:
                counts.warning += 1
            else:
                counts.error += 1
    return counts


def total_net_weight(net_weights: Iterable[Optional[Decimal]]) -> Optional[Decimal]:
    """Sum of the net weights that could be derived; absent if none could."""
    present = [value for value in net_weights if value is not None]
    if not present:
        return None
    return quantize(sum(present, Decimal("0")), TWO_PLACES)

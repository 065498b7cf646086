"""
Validation alert engine - flags physically implausible weighment and cutting test data.

Each rule is a small function of only the fields it needs and returns a list of
alerts (usually empty). The evaluators concatenate the rules in a fixed order, so
an entity can carry any number of alerts and their order is stable. Rules never
short-circuit one another, and a higher tier does not suppress a lower one.

Container rules:
1. Missing weighbridge readings (info)
2-4. Derived vs stored gross/tare/net discrepancies (warning)
5. Stored net above stored gross (error)
6. Tare above 30% of gross (warning)
7. Dunnage above 20% of gross (warning)

Cutting test rules:
1. Moisture tiers: >11 warning, >15 error, <5 info
2. Sample weight lost while cutting: >5g warning, >50g error, gained weight error
3. Defective nut vs defective kernel (3.3 shrinkage): >5g warning, >20g error
4. Expected vs recorded good kernel: >10g warning, >30g error
5. Outturn rate: >55 or <30 warning, <20 error
6. Share of sample weight accounted for: <80% warning, >120% error
7. Missing sample weight (info) - nothing else is evaluated without it
"""
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from cashew_qc.config.threshold_loader import Thresholds, get_thresholds
from cashew_qc.schemas.alert import Alert, AlertCategory, AlertSeverity
from cashew_qc.schemas.bill import Bill
from cashew_qc.schemas.container import Container, DerivedWeights
from cashew_qc.schemas.cutting_test import CuttingTest
from cashew_qc.services.numeric import ONE_PLACE, TWO_PLACES, format_number, quantize, to_decimal
from cashew_qc.services.outturn_engine import effective_outturn_rate
from cashew_qc.services.weight_engine import derive_container_weights

TYPICAL_OUTTURN_LOW = Decimal("35")
HUNDRED = Decimal("100")


def _alert(
    severity: AlertSeverity,
    category: AlertCategory,
    message: str,
    field: str,
    observed_value: Optional[Decimal] = None,
    threshold: Optional[Decimal] = None,
) -> Alert:
    return Alert(
        severity=severity,
        category=category,
        message=message,
        field=field,
        observed_value=observed_value,
        threshold=threshold,
    )


# ---------------------------------------------------------------------------
# Container rules
# ---------------------------------------------------------------------------

WEIGHBRIDGE_FIELDS = (
    ("w_total", "Total weight"),
    ("w_truck", "Truck weight"),
    ("w_container", "Container weight"),
)


def check_missing_weighbridge_readings(container: Container) -> List[Alert]:
    alerts = []
    for field_name, label in WEIGHBRIDGE_FIELDS:
        if getattr(container, field_name) is None:
            alerts.append(_alert(
                AlertSeverity.INFO,
                AlertCategory.MISSING_DATA,
                f"{label} is missing",
                field_name,
            ))
    return alerts


def check_weight_discrepancy(
    label: str,
    field: str,
    derived: Optional[Decimal],
    stored: Optional[Decimal],
    tolerance: Decimal,
) -> List[Alert]:
    if derived is None or stored is None:
        return []
    difference = abs(derived - stored)
    if difference <= tolerance:
        return []
    return [_alert(
        AlertSeverity.WARNING,
        AlertCategory.DISCREPANCY,
        f"{label} weight discrepancy: calculated {format_number(derived)}kg vs stored {format_number(stored)}kg",
        field,
        difference,
        tolerance,
    )]


def check_net_not_above_gross(stored_net: Optional[Decimal], stored_gross: Optional[Decimal]) -> List[Alert]:
    if stored_net is None or stored_gross is None or stored_net <= stored_gross:
        return []
    return [_alert(
        AlertSeverity.ERROR,
        AlertCategory.LOGICAL,
        "Net weight cannot be greater than gross weight",
        "w_net",
        stored_net,
        stored_gross,
    )]


def check_share_of_gross(
    label: str,
    field: str,
    part: Optional[Decimal],
    gross: Optional[Decimal],
    ratio: Decimal,
) -> List[Alert]:
    if part is None or gross is None:
        return []
    limit = gross * ratio
    if part <= limit:
        return []
    return [_alert(
        AlertSeverity.WARNING,
        AlertCategory.WEIGHT,
        f"{label} weight seems high: {format_number(part)}kg "
        f"(> {format_number(ratio * HUNDRED)}% of gross weight {format_number(gross)}kg)",
        field,
        part,
        limit,
    )]


def evaluate_container_alerts(
    container: Container,
    bill: Bill,
    derived: Optional[DerivedWeights] = None,
    thresholds: Optional[Thresholds] = None,
) -> List[Alert]:
    """
    Evaluate every container rule against the container's stored weights and the
    weights derived from its readings. ``derived`` can be passed when the caller
    already computed it.
    """
    t = thresholds or get_thresholds()
    weights = derived or derive_container_weights(container, bill)
    dunnage = to_decimal(bill.w_dunnage_dribag)

    alerts: List[Alert] = []
    alerts += check_missing_weighbridge_readings(container)
    alerts += check_weight_discrepancy("Gross", "w_gross", weights.w_gross, container.w_gross, t.gross_discrepancy_kg)
    alerts += check_weight_discrepancy("Tare", "w_tare", weights.w_tare, container.w_tare, t.tare_discrepancy_kg)
    alerts += check_weight_discrepancy("Net", "w_net", weights.w_net, container.w_net, t.net_discrepancy_kg)
    alerts += check_net_not_above_gross(container.w_net, container.w_gross)
    alerts += check_share_of_gross("Tare", "w_tare", weights.w_tare, weights.w_gross, t.tare_ratio_of_gross)
    alerts += check_share_of_gross("Dunnage", "w_dunnage_dribag", dunnage, weights.w_gross, t.dunnage_ratio_of_gross)
    return alerts


# ---------------------------------------------------------------------------
# Cutting test rules
# ---------------------------------------------------------------------------

def check_moisture(moisture: Optional[Decimal], t: Thresholds) -> List[Alert]:
    if moisture is None:
        return []

    alerts = []
    shown = format_number(moisture, ONE_PLACE)
    if moisture > t.moisture_high:
        alerts.append(_alert(
            AlertSeverity.WARNING,
            AlertCategory.MOISTURE,
            f"High moisture content: {shown}% (exceeds {format_number(t.moisture_high)}% threshold)",
            "moisture",
            moisture,
            t.moisture_high,
        ))
    if moisture > t.moisture_critical:
        alerts.append(_alert(
            AlertSeverity.ERROR,
            AlertCategory.MOISTURE,
            f"Critical moisture level: {shown}% (exceeds {format_number(t.moisture_critical)}% critical threshold)",
            "moisture",
            moisture,
            t.moisture_critical,
        ))
    if moisture < t.moisture_low:
        alerts.append(_alert(
            AlertSeverity.INFO,
            AlertCategory.MOISTURE,
            f"Low moisture content: {shown}% (may indicate over-drying)",
            "moisture",
            moisture,
            t.moisture_low,
        ))
    return alerts


def check_sample_weight_loss(
    sample_weight: Optional[int],
    w_sample_after_cut: Optional[int],
    t: Thresholds,
) -> List[Alert]:
    if sample_weight is None or w_sample_after_cut is None:
        return []

    alerts = []
    difference = Decimal(sample_weight - w_sample_after_cut)
    if difference > t.sample_loss_warning_g:
        alerts.append(_alert(
            AlertSeverity.WARNING,
            AlertCategory.WEIGHT,
            f"Sample weight discrepancy: {format_number(difference)}g "
            f"(exceeds {format_number(t.sample_loss_warning_g)}g threshold)",
            "w_sample_after_cut",
            difference,
            t.sample_loss_warning_g,
        ))
    if difference > t.sample_loss_critical_g:
        alerts.append(_alert(
            AlertSeverity.ERROR,
            AlertCategory.WEIGHT,
            f"Excessive sample weight loss: {format_number(difference)}g "
            f"(exceeds {format_number(t.sample_loss_critical_g)}g critical threshold)",
            "w_sample_after_cut",
            difference,
            t.sample_loss_critical_g,
        ))
    if difference < 0:
        alerts.append(_alert(
            AlertSeverity.ERROR,
            AlertCategory.WEIGHT,
            f"Invalid weight change: sample weight increased by {format_number(-difference)}g after cutting",
            "w_sample_after_cut",
            difference,
        ))
    return alerts


def check_defective_kernel(
    w_defective_nut: Optional[int],
    w_defective_kernel: Optional[int],
    t: Thresholds,
) -> List[Alert]:
    if w_defective_nut is None or w_defective_kernel is None:
        return []

    alerts = []
    expected_kernel = Decimal(w_defective_nut) / t.nut_to_kernel_ratio
    difference = abs(expected_kernel - Decimal(w_defective_kernel))
    shown = format_number(difference, ONE_PLACE)
    if difference > t.defective_kernel_warning_g:
        alerts.append(_alert(
            AlertSeverity.WARNING,
            AlertCategory.RATIO,
            f"Defective kernel weight discrepancy: {shown}g "
            f"(exceeds {format_number(t.defective_kernel_warning_g)}g threshold)",
            "w_defective_kernel",
            quantize(difference, TWO_PLACES),
            t.defective_kernel_warning_g,
        ))
    if difference > t.defective_kernel_critical_g:
        alerts.append(_alert(
            AlertSeverity.ERROR,
            AlertCategory.RATIO,
            f"Critical defective kernel discrepancy: {shown}g "
            f"(exceeds {format_number(t.defective_kernel_critical_g)}g critical threshold)",
            "w_defective_kernel",
            quantize(difference, TWO_PLACES),
            t.defective_kernel_critical_g,
        ))
    return alerts


def check_good_kernel(
    sample_weight: Optional[int],
    w_reject_nut: Optional[int],
    w_defective_nut: Optional[int],
    w_good_kernel: Optional[int],
    t: Thresholds,
) -> List[Alert]:
    if None in (sample_weight, w_reject_nut, w_defective_nut, w_good_kernel):
        return []

    alerts = []
    expected_good_kernel = Decimal(sample_weight - w_reject_nut - w_defective_nut) / t.nut_to_kernel_ratio
    difference = abs(expected_good_kernel - Decimal(w_good_kernel))
    shown = format_number(difference, ONE_PLACE)
    if difference > t.good_kernel_warning_g:
        alerts.append(_alert(
            AlertSeverity.WARNING,
            AlertCategory.CALCULATION,
            f"Good kernel weight discrepancy: {shown}g "
            f"(exceeds {format_number(t.good_kernel_warning_g)}g threshold)",
            "w_good_kernel",
            quantize(difference, TWO_PLACES),
            t.good_kernel_warning_g,
        ))
    if difference > t.good_kernel_critical_g:
        alerts.append(_alert(
            AlertSeverity.ERROR,
            AlertCategory.CALCULATION,
            f"Critical good kernel discrepancy: {shown}g "
            f"(exceeds {format_number(t.good_kernel_critical_g)}g critical threshold)",
            "w_good_kernel",
            quantize(difference, TWO_PLACES),
            t.good_kernel_critical_g,
        ))
    return alerts


def check_outturn_rate(outturn_rate: Optional[Decimal], t: Thresholds) -> List[Alert]:
    if outturn_rate is None:
        return []

    alerts = []
    shown = format_number(outturn_rate, TWO_PLACES)
    typical = f"typical range: {format_number(TYPICAL_OUTTURN_LOW)}-{format_number(t.outturn_high)}"
    if outturn_rate > t.outturn_high:
        alerts.append(_alert(
            AlertSeverity.WARNING,
            AlertCategory.CALCULATION,
            f"High outturn rate: {shown} lbs/80kg ({typical})",
            "outturn_rate",
            outturn_rate,
            t.outturn_high,
        ))
    if outturn_rate < t.outturn_low:
        alerts.append(_alert(
            AlertSeverity.WARNING,
            AlertCategory.CALCULATION,
            f"Low outturn rate: {shown} lbs/80kg ({typical})",
            "outturn_rate",
            outturn_rate,
            t.outturn_low,
        ))
    if outturn_rate < t.outturn_critical_low:
        alerts.append(_alert(
            AlertSeverity.ERROR,
            AlertCategory.CALCULATION,
            f"Critical low outturn rate: {shown} lbs/80kg "
            f"(minimum expected: {format_number(t.outturn_critical_low)})",
            "outturn_rate",
            outturn_rate,
            t.outturn_critical_low,
        ))
    return alerts


def check_weight_accounting(
    sample_weight: Optional[int],
    w_reject_nut: Optional[int],
    w_defective_nut: Optional[int],
    w_good_kernel: Optional[int],
    t: Thresholds,
) -> List[Alert]:
    if None in (sample_weight, w_reject_nut, w_defective_nut, w_good_kernel):
        return []

    alerts = []
    processed = Decimal(w_reject_nut + w_defective_nut) + Decimal(w_good_kernel) * t.nut_to_kernel_ratio
    accounted_for = processed / Decimal(sample_weight)
    percent = quantize(accounted_for * HUNDRED, ONE_PLACE)
    if accounted_for < t.weight_accounted_low:
        alerts.append(_alert(
            AlertSeverity.WARNING,
            AlertCategory.WEIGHT,
            f"Weight accounting issue: only {format_number(percent, ONE_PLACE)}% of sample weight accounted for",
            "sample_weight",
            percent,
            t.weight_accounted_low * HUNDRED,
        ))
    if accounted_for > t.weight_accounted_high:
        alerts.append(_alert(
            AlertSeverity.ERROR,
            AlertCategory.WEIGHT,
            f"Weight accounting error: {format_number(percent, ONE_PLACE)}% of sample weight accounted for "
            f"(exceeds {format_number(t.weight_accounted_high * HUNDRED)}%)",
            "sample_weight",
            percent,
            t.weight_accounted_high * HUNDRED,
        ))
    return alerts


def check_sample_weight_present(sample_weight: Optional[int]) -> List[Alert]:
    if sample_weight is not None:
        return []
    return [_alert(
        AlertSeverity.INFO,
        AlertCategory.MISSING_DATA,
        "Sample weight is missing",
        "sample_weight",
    )]


def evaluate_cutting_test_alerts(test: CuttingTest, thresholds: Optional[Thresholds] = None) -> List[Alert]:
    """
    Evaluate every cutting test rule. Without a sample weight only the
    missing-data alert is returned, since every other rule depends on it.
    """
    missing = check_sample_weight_present(test.sample_weight)
    if missing:
        return missing

    t = thresholds or get_thresholds()
    alerts: List[Alert] = []
    alerts += check_moisture(test.moisture, t)
    alerts += check_sample_weight_loss(test.sample_weight, test.w_sample_after_cut, t)
    alerts += check_defective_kernel(test.w_defective_nut, test.w_defective_kernel, t)
    alerts += check_good_kernel(test.sample_weight, test.w_reject_nut, test.w_defective_nut, test.w_good_kernel, t)
    alerts += check_outturn_rate(effective_outturn_rate(test), t)
    alerts += check_weight_accounting(test.sample_weight, test.w_reject_nut, test.w_defective_nut, test.w_good_kernel, t)
    return alerts


# ---------------------------------------------------------------------------
# Alert list helpers
# ---------------------------------------------------------------------------

def has_errors(alerts: Iterable[Alert]) -> bool:
    return any(alert.severity == AlertSeverity.ERROR for alert in alerts)


def has_warnings(alerts: Iterable[Alert]) -> bool:
    return any(alert.severity == AlertSeverity.WARNING for alert in alerts)


def alerts_by_category(alerts: Iterable[Alert]) -> Dict[AlertCategory, List[Alert]]:
    grouped: Dict[AlertCategory, List[Alert]] = {}
    for alert in alerts:
        grouped.setdefault(alert.category, []).append(alert)
    return grouped


def alert_messages(alerts: Iterable[Alert]) -> List[str]:
    return [alert.message for alert in alerts]

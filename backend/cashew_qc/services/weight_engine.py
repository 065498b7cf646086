"""
Weight derivation - computes gross, tare and net weights for a container.

Business rules:
1. gross = total - truck - container tare, floored at 0
2. tare = bags * jute bag weight (bill constant), never floored
3. net = gross - dunnage/dribag (bill constant) - tare, floored at 0
4. A missing input anywhere in the chain leaves the dependent weight absent
"""
from decimal import Decimal
from typing import Dict, Optional

from cashew_qc.schemas.bill import Bill
from cashew_qc.schemas.container import Container, DerivedWeights
from cashew_qc.services.numeric import ZERO, lift, quantize, to_decimal

CALCULATED = "calculated"
PENDING = "pending"


def _gross(total: Decimal, truck: Decimal, container_tare: Decimal) -> Decimal:
    return max(ZERO, total - truck - container_tare)


def _tare(quantity_of_bags: int, jute_bag_weight: Decimal) -> Decimal:
    return quantize(Decimal(quantity_of_bags) * jute_bag_weight)


def _net(gross: Decimal, dunnage: Decimal, tare: Decimal) -> Decimal:
    return quantize(max(ZERO, gross - dunnage - tare))


def derive_gross_weight(
    w_total: Optional[Decimal],
    w_truck: Optional[Decimal],
    w_container: Optional[Decimal],
) -> Optional[Decimal]:
    return lift(_gross, to_decimal(w_total), to_decimal(w_truck), to_decimal(w_container))


def derive_tare_weight(quantity_of_bags: Optional[int], w_jute_bag: Optional[Decimal]) -> Optional[Decimal]:
    return lift(_tare, quantity_of_bags, to_decimal(w_jute_bag))


def derive_net_weight(
    w_gross: Optional[Decimal],
    w_dunnage_dribag: Optional[Decimal],
    w_tare: Optional[Decimal],
) -> Optional[Decimal]:
    return lift(_net, w_gross, to_decimal(w_dunnage_dribag), w_tare)


def derive_container_weights(container: Container, bill: Bill) -> DerivedWeights:
    """
    Derive {gross, tare, net} for one container from its weighbridge readings
    and the owning bill's jute bag and dunnage constants.
    """
    gross = derive_gross_weight(container.w_total, container.w_truck, container.w_container)
    tare = derive_tare_weight(container.quantity_of_bags, bill.w_jute_bag)
    net = derive_net_weight(gross, bill.w_dunnage_dribag, tare)
    return DerivedWeights(w_gross=gross, w_tare=tare, w_net=net)


def calculation_status(weights: DerivedWeights) -> Dict[str, str]:
    """Which derived weights could be computed and which still wait on inputs."""
    return {
        "gross": CALCULATED if weights.w_gross is not None else PENDING,
        "tare": CALCULATED if weights.w_tare is not None else PENDING,
        "net": CALCULATED if weights.w_net is not None else PENDING,
    }


def apply_derived_weights(container: Container, weights: DerivedWeights) -> Container:
    """
    Return a copy of the container with the derived weights filled in, ready for
    the record store. Weights that could not be derived keep their stored value.
    """
    updates = {
        field_name: value
        for field_name, value in weights.model_dump().items()
        if value is not None
    }
    return container.model_copy(update=updates)

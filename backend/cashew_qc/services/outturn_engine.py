"""
Outturn derivation - expected kernel yield of a raw-nut batch.

Outturn is quoted in lbs of kernel per 80 kg of raw nuts:
    rate = (defective_kernel / 2 + good_kernel) * 80 / 453.6
Defective kernels count at half weight. The result is rounded to 2 places and
clamped to [0, 60], the range the stored column accepts.
"""
from decimal import Decimal
from typing import Iterable, Optional

from cashew_qc.schemas.container import Container
from cashew_qc.schemas.cutting_test import CuttingTest, DefectiveRatio
from cashew_qc.services.numeric import ONE_PLACE, ZERO, clamp, format_number, lift, quantize, to_decimal

GRAMS_PER_POUND = Decimal("453.6")
REFERENCE_BATCH_KG = Decimal("80")
MAX_OUTTURN_RATE = Decimal("60")


def _outturn(defective_kernel: Decimal, good_kernel: Decimal) -> Decimal:
    raw = (defective_kernel / 2 + good_kernel) * REFERENCE_BATCH_KG / GRAMS_PER_POUND
    return quantize(clamp(raw, ZERO, MAX_OUTTURN_RATE))


def derive_outturn_rate(
    w_defective_kernel: Optional[Decimal],
    w_good_kernel: Optional[Decimal],
) -> Optional[Decimal]:
    """Outturn rate from kernel weights in grams; absent if either weight is."""
    return lift(
        _outturn,
        to_decimal(w_defective_kernel),
        to_decimal(w_good_kernel),
    )


def derive_test_outturn_rate(test: CuttingTest) -> Optional[Decimal]:
    return derive_outturn_rate(test.w_defective_kernel, test.w_good_kernel)


def effective_outturn_rate(test: CuttingTest) -> Optional[Decimal]:
    """The stored outturn rate, or the derived one when nothing was stored yet."""
    if test.outturn_rate is not None:
        return test.outturn_rate
    return derive_test_outturn_rate(test)


def apply_outturn_rate(test: CuttingTest) -> CuttingTest:
    rate = derive_test_outturn_rate(test)
    if rate is None:
        return test
    return test.model_copy(update={"outturn_rate": rate})


def defective_ratio(test: CuttingTest) -> Optional[DefectiveRatio]:
    """
    Defective kernel to defective nut ratio, displayed as "nut/ratio".

    Absent when either weight is missing or zero.
    """
    if not test.w_defective_nut or not test.w_defective_kernel:
        return None

    ratio = quantize(Decimal(test.w_defective_kernel) / Decimal(test.w_defective_nut), ONE_PLACE)
    return DefectiveRatio(
        defective_nut=test.w_defective_nut,
        defective_kernel=test.w_defective_kernel,
        ratio=ratio,
        formatted=f"{test.w_defective_nut}/{format_number(ratio)}",
    )


def container_outturn_rate(container: Container, tests: Iterable[CuttingTest]) -> Optional[Decimal]:
    """First recorded outturn rate among the container's own cuts."""
    for test in tests:
        if test.container_id != container.id:
            continue
        rate = effective_outturn_rate(test)
        if rate is not None:
            return rate
    return None

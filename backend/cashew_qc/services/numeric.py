"""
Decimal helpers shared by the derivation and alert units.

Every measurement is "present or absent" until fully recorded, so the helpers
here propagate None instead of substituting defaults.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")

ZERO = Decimal("0")
ONE_PLACE = Decimal("0.1")
TWO_PLACES = Decimal("0.01")


def to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None


def lift(func: Callable[..., T], *operands: Any) -> Optional[T]:
    """
    Apply ``func`` to the operands only when every one of them is present.

    This is the map over "value or absent": a missing input anywhere in a chain
    of lifted calls leaves every downstream result absent.
    """
    if any(operand is None for operand in operands):
        return None
    return func(*operands)


def quantize(value: Optional[Decimal], places: Decimal = TWO_PLACES) -> Optional[Decimal]:
    """Round half away from zero, the way the stored decimal columns do."""
    if value is None:
        return None
    return value.quantize(places, rounding=ROUND_HALF_UP)


def clamp(value: Decimal, low: Optional[Decimal] = None, high: Optional[Decimal] = None) -> Decimal:
    if low is not None and value < low:
        return low
    if high is not None and value > high:
        return high
    return value


def format_number(value: Decimal, places: Optional[Decimal] = None) -> str:
    """
    Render a decimal for alert messages without exponent or trailing zeros
    (12500 -> "12500", 10.30 -> "10.3"). With ``places`` the value is rounded
    first and the fixed precision is kept (12.5 -> "12.5", 16 -> "16.0").
    """
    if places is not None:
        return f"{quantize(value, places):f}"
    normalized = value.normalize()
    if normalized == normalized.to_integral_value():
        return f"{normalized.quantize(Decimal('1')):f}"
    return f"{normalized:f}"

"""
Dimensional Weight

Bulky but light packages are rated by a volume-derived weight instead of
their physical weight. The rule rewrites packageDetail.weight of a
shipping request in place:

- physical weight <= 1 lb: never dimensional
- length + girth <= 50 in: not eligible
- volume <= 1 cubic foot (1728 in^3): not eligible
- otherwise weight = max(physical lb, volume / divisor), unit forced to LB

Incomplete or unrecognised input is treated as "not eligible" and leaves
the request untouched. Nothing here raises.

Dimensions are always converted to inches before any check, so the cubic
foot threshold is applied to inch volume for both IN and CM input.
"""
import logging
import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_DIVISOR = 166
MIN_PHYSICAL_WEIGHT_LB = 1
MIN_LENGTH_PLUS_GIRTH_IN = 50
CUBIC_FOOT_IN3 = 1728

GRAMS_PER_LB = 453.592
LB_PER_KG = 2.205
OZ_PER_LB = 16
CM_PER_IN = 2.54


class WeightUnit(str, Enum):
    G = "G"
    KG = "KG"
    LB = "LB"
    OZ = "OZ"


class DimensionUnit(str, Enum):
    IN = "IN"
    CM = "CM"


def _number(value: Any) -> Optional[float]:
    """Coerce a JSON number; None for missing, zero, bool, NaN/inf or non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not number or not math.isfinite(number):
        return None
    return number


def _unit(value: Any, enum_cls):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        return None


def to_pounds(value: float, unit) -> Optional[float]:
    """Convert a weight to pounds. Returns None for an unknown unit."""
    unit = _unit(unit, WeightUnit)
    if unit is WeightUnit.G:
        return value / GRAMS_PER_LB
    if unit is WeightUnit.KG:
        return value * LB_PER_KG
    if unit is WeightUnit.OZ:
        return value / OZ_PER_LB
    if unit is WeightUnit.LB:
        return value
    return None


def to_inches(value: float, unit) -> Optional[float]:
    """Convert a length to inches. Returns None for an unknown unit."""
    unit = _unit(unit, DimensionUnit)
    if unit is DimensionUnit.CM:
        return value / CM_PER_IN
    if unit is DimensionUnit.IN:
        return value
    return None


def round_weight(value: float) -> float:
    """Round half-up to 2 decimals, as the carrier displays weights."""
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def calculate_dimensional_weight(
    package_detail: Dict[str, Any],
    divisor: float = DEFAULT_DIVISOR,
) -> Optional[float]:
    """
    Compute the billable weight in pounds for a packageDetail block.

    Returns None when the package is not eligible for dimensional weight,
    otherwise the rounded max(physical, dimensional) weight.
    """
    if not isinstance(package_detail, dict):
        return None

    weight = package_detail.get("weight")
    if not isinstance(weight, dict):
        return None

    value = _number(weight.get("value"))
    if value is None:
        return None

    weight_lb = to_pounds(value, weight.get("unitOfMeasure"))
    if weight_lb is None:
        return None

    # Small packages never use dimensional weight
    if weight_lb <= MIN_PHYSICAL_WEIGHT_LB:
        return None

    dimension = package_detail.get("dimension")
    if not isinstance(dimension, dict):
        return None

    height = _number(dimension.get("height"))
    length = _number(dimension.get("length"))
    width = _number(dimension.get("width"))
    unit = dimension.get("unitOfMeasure")
    if height is None or length is None or width is None or not unit:
        return None

    height = to_inches(height, unit)
    length = to_inches(length, unit)
    width = to_inches(width, unit)
    if height is None or length is None or width is None:
        return None

    girth = 2 * width + 2 * height
    if length + girth <= MIN_LENGTH_PLUS_GIRTH_IN:
        return None

    volume = length * width * height
    if volume <= CUBIC_FOOT_IN3:
        return None

    divisor = _number(divisor)
    if divisor is None or divisor <= 0:
        return None

    candidate = volume / divisor
    return round_weight(max(weight_lb, candidate))


def apply_dimensional_weight(request: Dict[str, Any], divisor: float = DEFAULT_DIVISOR) -> None:
    """
    Rewrite request["packageDetail"]["weight"] with the dimensional weight.

    Args:
        request: Shipping request body, mutated in place
        divisor: Cubic inches per pound; carrier-specific, 166 by default
    """
    if not isinstance(request, dict):
        return

    package_detail = request.get("packageDetail")
    try:
        billable = calculate_dimensional_weight(package_detail, divisor)
    except (InvalidOperation, OverflowError):
        return

    if billable is None:
        return

    weight = package_detail["weight"]
    logger.debug(
        f"Dimensional weight applied: {weight.get('value')} {weight.get('unitOfMeasure')} -> {billable} LB"
    )
    weight["value"] = billable
    weight["unitOfMeasure"] = WeightUnit.LB.value

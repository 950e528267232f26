"""Weight unit conversion. Entries are stored in kg; kg/lbs is a display preference."""

from decimal import ROUND_HALF_UP, Decimal

LBS_TO_KG = 0.453592
KG_TO_LBS = 2.20462

KG = "kg"
LBS = "lbs"


def to_kg(weight: float, unit: str) -> float:
    return weight * LBS_TO_KG if unit == LBS else weight


def from_kg(weight_kg: float, unit: str) -> float:
    return weight_kg * KG_TO_LBS if unit == LBS else weight_kg


def round_half_up(value: float, places: int = 1) -> float:
    """Round half away from zero: 2.25 -> 2.3, not banker's rounding."""
    quant = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quant, rounding=ROUND_HALF_UP))


def display_weight(weight_kg: float, unit: str) -> float:
    """Weight in the user's unit, one decimal."""
    return round_half_up(from_kg(weight_kg, unit), 1)


def kg_for_storage(weight: float, unit: str) -> float:
    """Canonical stored weight: kg rounded half-up to one decimal."""
    return round_half_up(to_kg(weight, unit), 1)

"""
Unit registry for the electrical calculators.

Every quantity family (voltage, current, resistance, ...) has a fixed set of
unit symbols, each with a multiplier to the family's base unit. Values are
parsed from display strings into base units before solving, and solver
results are formatted back into display strings, optionally re-scaled to a
more legible unit (0.12 A → 120 mA).
"""

import math
from typing import Dict, NamedTuple, Optional, Tuple

import numpy as np


class ConfigurationError(Exception):
    """Raised for setup defects: unknown unit symbols, variables or domains."""


# Unit symbols per quantity family, largest multiplier first.
UNIT_FAMILIES: Dict[str, Tuple[Tuple[str, float], ...]] = {
    'voltage': (('kV', 1e3), ('V', 1.0), ('mV', 1e-3)),
    'current': (('A', 1.0), ('mA', 1e-3), ('µA', 1e-6), ('nA', 1e-9)),
    'resistance': (('GΩ', 1e9), ('MΩ', 1e6), ('kΩ', 1e3), ('Ω', 1.0)),
    'power': (('kW', 1e3), ('W', 1.0), ('mW', 1e-3)),
    'capacitance': (('F', 1.0), ('mF', 1e-3), ('µF', 1e-6), ('nF', 1e-9), ('pF', 1e-12)),
    'frequency': (('GHz', 1e9), ('MHz', 1e6), ('kHz', 1e3), ('Hz', 1.0)),
    'time': (('s', 1.0), ('ms', 1e-3), ('µs', 1e-6), ('ns', 1e-9)),
}

BASE_UNITS = {
    'voltage': 'V',
    'current': 'A',
    'resistance': 'Ω',
    'power': 'W',
    'capacitance': 'F',
    'frequency': 'Hz',
    'time': 's',
}

UNIT_MULTIPLIERS: Dict[str, float] = {
    symbol: multiplier
    for family in UNIT_FAMILIES.values()
    for symbol, multiplier in family
}

_UNIT_QUANTITY: Dict[str, str] = {
    symbol: quantity
    for quantity, family in UNIT_FAMILIES.items()
    for symbol, _ in family
}

# Spellings people type that mean a canonical symbol
UNIT_ALIASES = {
    'uA': 'µA',
    'uF': 'µF',
    'us': 'µs',
    'ohm': 'Ω',
    'Ohm': 'Ω',
    'ohms': 'Ω',
    'kohm': 'kΩ',
    'kOhm': 'kΩ',
    'Mohm': 'MΩ',
    'MOhm': 'MΩ',
    'Gohm': 'GΩ',
    'GOhm': 'GΩ',
}

DISPLAY_PRECISION = 4


class FormattedValue(NamedTuple):
    display_value: str
    unit: str


def normalize_unit(unit: str) -> str:
    """
    Map alternative spellings onto the canonical unit symbol.

    Handles ASCII 'u' for micro, the Greek mu (U+03BC) versus the micro sign
    (U+00B5), the ohm sign (U+2126) versus Greek omega, and 'ohm' words.
    Unknown symbols are returned unchanged so the caller can reject them.
    """
    if not isinstance(unit, str):
        return unit
    symbol = unit.strip().replace('\u03bc', '\u00b5').replace('\u2126', '\u03a9')
    return UNIT_ALIASES.get(symbol, symbol)


def scale_factor_of(unit: str) -> float:
    """Return the multiplier that converts a value in `unit` to base units."""
    symbol = normalize_unit(unit)
    try:
        return UNIT_MULTIPLIERS[symbol]
    except (KeyError, TypeError):
        raise ConfigurationError(f"Unknown unit '{unit}'") from None


def quantity_of(unit: str) -> str:
    """Return the quantity family a unit symbol belongs to."""
    symbol = normalize_unit(unit)
    try:
        return _UNIT_QUANTITY[symbol]
    except (KeyError, TypeError):
        raise ConfigurationError(f"Unknown unit '{unit}'") from None


def units_for(quantity: str) -> Tuple[str, ...]:
    """Return the unit symbols of a quantity family, largest first."""
    if quantity not in UNIT_FAMILIES:
        raise ConfigurationError(
            f"Unknown quantity '{quantity}'. Must be one of: {list(UNIT_FAMILIES.keys())}"
        )
    return tuple(symbol for symbol, _ in UNIT_FAMILIES[quantity])


def parse_number(text: Optional[str]) -> Optional[float]:
    """
    Parse a user-typed number. Returns None for empty or malformed input.

    'nan' and 'inf' parse as floats in Python but are never valid inputs.
    """
    if text is None:
        return None
    stripped = str(text).strip()
    if not stripped:
        return None
    try:
        number = float(stripped)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def to_base(text: Optional[str], unit: str) -> Optional[float]:
    """Parse a display string entered in `unit` and convert it to base units."""
    multiplier = scale_factor_of(unit)
    number = parse_number(text)
    if number is None:
        return None
    return number * multiplier


def format_number(value: float, precision: int = DISPLAY_PRECISION) -> str:
    """
    Render a number with `precision` significant digits in positional notation.

    Trailing zeros and a trailing decimal point are dropped:
        format_number(120.0)     → '120'
        format_number(4.70001)   → '4.7'
        format_number(1234567.0) → '1235000'
    """
    if value == 0:
        return '0'
    return np.format_float_positional(
        float(value), precision=precision, unique=False, fractional=False, trim='-'
    )


def best_unit(value: float, quantity: str) -> str:
    """
    Pick the display unit for a non-zero base-unit value.

    The unit with the largest multiplier whose scaled value is at least 1 in
    magnitude wins; when every scaled value is below 1, the smallest unit is
    used.
    """
    family = UNIT_FAMILIES[quantity]
    magnitude = abs(value)
    for symbol, multiplier in family:
        if magnitude / multiplier >= 1:
            return symbol
    return family[-1][0]


def format_result(
    value: Optional[float],
    quantity: str,
    current_unit: str,
    auto_scale: bool = True,
) -> FormattedValue:
    """
    Format a base-unit value for display.

    Args:
        value: Result in base units, or None when undetermined.
        quantity: Quantity family of the variable ('voltage', 'current', ...).
        current_unit: Unit currently selected for the field.
        auto_scale: Re-scale to the most legible unit of the family.

    Returns:
        FormattedValue(display_value, unit). None clears the field and keeps
        the current unit; zero also keeps the current unit.
    """
    current = normalize_unit(current_unit)
    if quantity_of(current) != quantity:
        raise ConfigurationError(f"Unit '{current_unit}' is not a {quantity} unit")

    if value is None or (isinstance(value, float) and math.isnan(value)):
        return FormattedValue('', current)
    if math.isinf(value):
        return FormattedValue('∞' if value > 0 else '-∞', current)
    if value == 0:
        return FormattedValue('0', current)

    unit = best_unit(value, quantity) if auto_scale else current
    text = format_number(value / UNIT_MULTIPLIERS[unit])
    if auto_scale:
        # Rounding can carry into the next unit up (999.96 → '1000')
        rounded_unit = best_unit(float(text) * UNIT_MULTIPLIERS[unit], quantity)
        if rounded_unit != unit:
            unit = rounded_unit
            text = format_number(value / UNIT_MULTIPLIERS[unit])
    return FormattedValue(text, unit)

"""
Domain solvers for the bidirectional calculators.

Each solver receives every variable of its domain as a base-unit number
(or None when the field is empty or malformed) plus the set of variables the
user supplied ("locked"), and derives the remaining variables algebraically:

    Ohm's law:        V = I·R
    Power:            P = V·I = I²·R = V²/R
    Voltage divider:  Vout = Vin · R2 / (R1 + R2)

Solvers never look at units and never return NaN or infinity: a division by
zero or a physically invalid combination becomes an error message instead.
"""

import math
from dataclasses import dataclass, field
from typing import AbstractSet, Callable, Dict, List, Mapping, Optional, Tuple

from calcengine.units import ConfigurationError, units_for


Values = Mapping[str, Optional[float]]


@dataclass
class DomainResult:
    """Output of one solver call. `results` holds base-unit values or None."""
    results: Dict[str, Optional[float]] = field(default_factory=dict)
    error: Optional[str] = None
    hint: Optional[str] = None


def _fail(message: str) -> DomainResult:
    return DomainResult(results={}, error=message)


def _missing_inputs(values: Values, locked: AbstractSet[str], labels: Mapping[str, str]) -> Optional[DomainResult]:
    """Hint result when a locked field does not hold a valid number."""
    missing = [labels[v] for v in labels if v in locked and values.get(v) is None]
    if not missing:
        return None
    return DomainResult(results={}, hint=f"Enter a valid number for {' and '.join(missing)}.")


# --- Ohm's law ---

OHMS_LAW_LABELS = {'voltage': 'Voltage', 'current': 'Current', 'resistance': 'Resistance'}


def solve_ohms_law(values: Values, locked: AbstractSet[str]) -> DomainResult:
    """
    Solve V = I·R for the one variable that is not locked.

    Args:
        values: voltage (V), current (A), resistance (Ω) in base units.
        locked: The two user-supplied variables.

    Returns:
        DomainResult with the third variable, or an error for zero or
        negative resistance and zero current.
    """
    incomplete = _missing_inputs(values, locked, OHMS_LAW_LABELS)
    if incomplete:
        return incomplete

    V = values.get('voltage')
    I = values.get('current')
    R = values.get('resistance')

    if 'resistance' in locked and R < 0:
        return _fail("Resistance cannot be negative.")

    if locked == {'voltage', 'current'}:
        if I == 0:
            return _fail("Current cannot be zero when calculating resistance.")
        R = V / I
        if R < 0:
            return _fail("Voltage and current must have the same sign (resistance would be negative).")
        return DomainResult(results={'resistance': R})

    if locked == {'voltage', 'resistance'}:
        if R == 0:
            return _fail("Resistance cannot be zero when calculating current.")
        return DomainResult(results={'current': V / R})

    if locked == {'current', 'resistance'}:
        return DomainResult(results={'voltage': I * R})

    raise ConfigurationError(f"Ohm's law needs two of {list(OHMS_LAW_LABELS)}, got {sorted(locked)}")


# --- Power (V, I, R, P) ---

POWER_LABELS = {'voltage': 'Voltage', 'current': 'Current', 'resistance': 'Resistance', 'power': 'Power'}


def solve_power(values: Values, locked: AbstractSet[str]) -> DomainResult:
    """
    Solve the power quadruple from any two of voltage, current, resistance
    and power.

    Resistance is a passive load here: a known or derived negative resistance
    is an error, as is a negative power dissipated in a known resistance.
    """
    incomplete = _missing_inputs(values, locked, POWER_LABELS)
    if incomplete:
        return incomplete

    V = values.get('voltage')
    I = values.get('current')
    R = values.get('resistance')
    P = values.get('power')

    if 'resistance' in locked and R < 0:
        return _fail("Resistance cannot be negative.")

    if locked == {'voltage', 'current'}:
        if I == 0:
            return _fail("Current cannot be zero when calculating resistance.")
        results = {'resistance': V / I, 'power': V * I}

    elif locked == {'voltage', 'resistance'}:
        if R == 0:
            return _fail("Resistance cannot be zero when calculating current and power.")
        results = {'current': V / R, 'power': V ** 2 / R}

    elif locked == {'voltage', 'power'}:
        if V == 0:
            return _fail("Voltage cannot be zero when calculating current.")
        if P == 0:
            return _fail("Power cannot be zero when calculating resistance.")
        results = {'current': P / V, 'resistance': V ** 2 / P}

    elif locked == {'current', 'resistance'}:
        results = {'voltage': I * R, 'power': I ** 2 * R}

    elif locked == {'current', 'power'}:
        if I == 0:
            return _fail("Current cannot be zero when calculating voltage and resistance.")
        results = {'voltage': P / I, 'resistance': P / I ** 2}

    elif locked == {'resistance', 'power'}:
        if R == 0:
            return _fail("Resistance cannot be zero when calculating current and voltage.")
        if P < 0:
            return _fail("Power dissipated in a resistance cannot be negative.")
        results = {'current': math.sqrt(P / R), 'voltage': math.sqrt(P * R)}

    else:
        raise ConfigurationError(f"Power solver needs two of {list(POWER_LABELS)}, got {sorted(locked)}")

    if results.get('resistance') is not None and results['resistance'] < 0:
        return _fail("Resistance would be negative; check the signs of the known values.")
    return DomainResult(results=results)


# --- Voltage divider (Vin, R1, R2, Vout) ---

VOLTAGE_DIVIDER_LABELS = {'vin': 'Vin', 'r1': 'R1', 'r2': 'R2', 'vout': 'Vout'}


def solve_voltage_divider(values: Values, locked: AbstractSet[str]) -> DomainResult:
    """
    Solve Vout = Vin · R2 / (R1 + R2) for whichever variable is not locked.

    Vout is the voltage across R2. Three known values are required.
    """
    incomplete = _missing_inputs(values, locked, VOLTAGE_DIVIDER_LABELS)
    if incomplete:
        return incomplete

    unknown = [v for v in VOLTAGE_DIVIDER_LABELS if v not in locked]
    if len(unknown) != 1:
        raise ConfigurationError(f"Voltage divider needs three known values, got {sorted(locked)}")
    unknown = unknown[0]

    vin = values.get('vin')
    r1 = values.get('r1')
    r2 = values.get('r2')
    vout = values.get('vout')

    for name, resistance in (('R1', r1), ('R2', r2)):
        if resistance is not None and name.lower() in locked and resistance < 0:
            return _fail(f"{name} cannot be negative.")

    if unknown == 'vout':
        if r1 + r2 == 0:
            return _fail("Total resistance (R1 + R2) cannot be zero.")
        return DomainResult(results={'vout': vin * r2 / (r1 + r2)})

    if unknown == 'vin':
        if r2 == 0:
            return _fail("R2 cannot be zero when calculating Vin.")
        return DomainResult(results={'vin': vout * (r1 + r2) / r2})

    # Solving for a resistor: Vout must sit between 0 and Vin
    if vin == 0 or not (0 <= vout / vin <= 1):
        return _fail("Vout must lie between 0 and Vin.")

    if unknown == 'r2':
        if vout == vin:
            return _fail("Vout equal to Vin needs an infinite R2.")
        return DomainResult(results={'r2': vout * r1 / (vin - vout)})

    if vout == 0:
        return _fail("Vout cannot be zero when calculating R1.")
    return DomainResult(results={'r1': r2 * (vin - vout) / vout})


def analyze_voltage_divider(vin: float, r1: float, r2: float, tolerance: float = 0.05) -> Dict:
    """
    Full analysis of an unloaded voltage divider.

    Args:
        vin: Input voltage (V)
        r1: Top resistor (Ohms)
        r2: Bottom resistor (Ohms), Vout is measured across it
        tolerance: Resistor tolerance as a fraction (0.05 = ±5%)

    Returns:
        Dict with total resistance, loop current, the drop across each
        resistor, and the Vout range when both resistors drift to opposite
        tolerance limits.
    """
    if r1 <= 0:
        raise ValueError("R1 must be positive.")
    if r2 < 0:
        raise ValueError("R2 must be non-negative.")
    if tolerance < 0:
        raise ValueError(f"Tolerance must be non-negative, got {tolerance}")

    total = r1 + r2
    current = vin / total
    drop_r1 = current * r1
    drop_r2 = current * r2

    # Lowest Vout: R1 high, R2 low. Highest Vout: R1 low, R2 high.
    r1_high, r1_low = r1 * (1 + tolerance), r1 * (1 - tolerance)
    r2_high, r2_low = r2 * (1 + tolerance), r2 * (1 - tolerance)
    vout_min = vin * r2_low / (r1_high + r2_low)
    vout_max = vin * r2_high / (r1_low + r2_high) if r1_low + r2_high > 0 else None

    return {
        'total_resistance': total,
        'current': current,
        'voltage_drop_r1': drop_r1,
        'voltage_drop_r2': drop_r2,
        'vout': drop_r2,
        'vout_min': vout_min,
        'vout_max': vout_max,
        'tolerance': tolerance,
        'formula': 'Vout = Vin * (R2 / (R1 + R2))',
    }


# --- Domain registry ---

Solver = Callable[[Values, AbstractSet[str]], DomainResult]


@dataclass(frozen=True)
class Domain:
    """Configuration of one calculator: its variables, units and solver."""
    name: str
    title: str
    variable_order: Tuple[str, ...]
    quantities: Mapping[str, str]
    initial_units: Mapping[str, str]
    solve: Solver
    labels: Mapping[str, str]
    required_inputs: int = 2
    auto_scale: bool = True
    formula: str = ''

    def __post_init__(self):
        if set(self.variable_order) != set(self.quantities):
            raise ConfigurationError(f"Domain '{self.name}': variable_order and quantities disagree")
        for variable in self.variable_order:
            unit = self.initial_units.get(variable)
            if unit not in units_for(self.quantities[variable]):
                raise ConfigurationError(
                    f"Domain '{self.name}': '{unit}' is not a valid unit for {variable}"
                )
        if not 1 <= self.required_inputs < len(self.variable_order):
            raise ConfigurationError(f"Domain '{self.name}': required_inputs out of range")

    def unit_options(self, variable: str) -> Tuple[str, ...]:
        return units_for(self.quantities[variable])

    def describe(self) -> Dict:
        """Plain-dict summary of the domain for API catalogues."""
        return {
            'name': self.name,
            'title': self.title,
            'formula': self.formula,
            'required_inputs': self.required_inputs,
            'variables': [
                {
                    'name': v,
                    'label': self.labels[v],
                    'quantity': self.quantities[v],
                    'default_unit': self.initial_units[v],
                    'units': list(self.unit_options(v)),
                }
                for v in self.variable_order
            ],
        }


OHMS_LAW = Domain(
    name='ohms_law',
    title="Ohm's Law",
    variable_order=('voltage', 'current', 'resistance'),
    quantities={'voltage': 'voltage', 'current': 'current', 'resistance': 'resistance'},
    initial_units={'voltage': 'V', 'current': 'A', 'resistance': 'Ω'},
    solve=solve_ohms_law,
    labels=OHMS_LAW_LABELS,
    formula='V = I × R',
)

POWER = Domain(
    name='power',
    title='Power',
    variable_order=('voltage', 'current', 'resistance', 'power'),
    quantities={'voltage': 'voltage', 'current': 'current', 'resistance': 'resistance', 'power': 'power'},
    initial_units={'voltage': 'V', 'current': 'A', 'resistance': 'Ω', 'power': 'W'},
    solve=solve_power,
    labels=POWER_LABELS,
    formula='P = V × I = I² × R = V² / R',
)

VOLTAGE_DIVIDER = Domain(
    name='voltage_divider',
    title='Voltage Divider',
    variable_order=('vin', 'r1', 'r2', 'vout'),
    quantities={'vin': 'voltage', 'r1': 'resistance', 'r2': 'resistance', 'vout': 'voltage'},
    initial_units={'vin': 'V', 'r1': 'kΩ', 'r2': 'kΩ', 'vout': 'V'},
    solve=solve_voltage_divider,
    labels=VOLTAGE_DIVIDER_LABELS,
    required_inputs=3,
    formula='Vout = Vin × R2 / (R1 + R2)',
)

DOMAINS: Dict[str, Domain] = {d.name: d for d in (OHMS_LAW, POWER, VOLTAGE_DIVIDER)}


def get_domain(name: str) -> Domain:
    """Look up a calculator domain by name."""
    if name not in DOMAINS:
        raise ConfigurationError(f"Unknown calculator '{name}'. Must be one of: {list(DOMAINS.keys())}")
    return DOMAINS[name]


def list_domains() -> List[Domain]:
    return list(DOMAINS.values())

"""
Calculator Engine

Bidirectional electrical-quantity calculators (Ohm's law, power, voltage
divider) and closed-form waveform sampling for the study tools.

All math is deterministic and unit-agnostic: values are normalized to base
units before a solver sees them and formatted back for display afterwards.
"""

from calcengine.units import ConfigurationError, scale_factor_of, to_base, format_result, units_for
from calcengine.solvers import DomainResult, Domain, get_domain, list_domains, analyze_voltage_divider
from calcengine.calculator import Calculator, CalculatorState, MessageKind
from calcengine.debounce import Debouncer
from calcengine.waveform import (
    WaveformParams,
    WaveformType,
    DataPoint,
    generate_sine_wave,
    generate_square_wave,
    generate_triangle_wave,
    generate_sawtooth_wave,
    generate_waveform,
)

__version__ = "0.1.0"

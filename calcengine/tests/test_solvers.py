"""
Tests for the domain solvers.

Validates:
1. Ohm's law for every pair of known values
2. The power quadruple for every pair of known values
3. Voltage divider for every triple of known values
4. Round-trip consistency: derived values fed back reproduce the inputs
5. Division by zero and invalid combinations give errors, never NaN/inf
"""

import itertools
import math

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from calcengine.solvers import (
    DOMAINS,
    ConfigurationError,
    analyze_voltage_divider,
    get_domain,
    list_domains,
    solve_ohms_law,
    solve_power,
    solve_voltage_divider,
)


def _inputs(**known):
    """Full value mapping with only the known variables filled in."""
    return known, set(known)


def _assert_finite(result):
    for value in result.results.values():
        assert value is None or math.isfinite(value)


class TestOhmsLaw:
    """Test V = I·R."""

    def test_resistance_from_voltage_and_current(self):
        result = solve_ohms_law({'voltage': 12.0, 'current': 0.12, 'resistance': None},
                                {'voltage', 'current'})
        assert result.error is None
        assert result.results['resistance'] == pytest.approx(100.0)

    def test_current_from_voltage_and_resistance(self):
        result = solve_ohms_law(*_inputs(voltage=12.0, resistance=100.0))
        assert result.results['current'] == pytest.approx(0.12)

    def test_voltage_from_current_and_resistance(self):
        result = solve_ohms_law(*_inputs(current=0.12, resistance=100.0))
        assert result.results['voltage'] == pytest.approx(12.0)

    def test_zero_resistance_is_error(self):
        """Division by zero yields an error and no current."""
        result = solve_ohms_law(*_inputs(voltage=12.0, resistance=0.0))
        assert result.error is not None
        assert 'current' not in result.results or result.results['current'] is None

    def test_zero_current_is_error(self):
        result = solve_ohms_law(*_inputs(voltage=12.0, current=0.0))
        assert result.error is not None
        assert result.results == {}

    def test_negative_resistance_is_error(self):
        result = solve_ohms_law(*_inputs(current=1.0, resistance=-5.0))
        assert result.error is not None

    def test_opposite_signs_give_error(self):
        result = solve_ohms_law(*_inputs(voltage=-12.0, current=0.5))
        assert result.error is not None

    def test_both_negative_is_fine(self):
        result = solve_ohms_law(*_inputs(voltage=-12.0, current=-0.5))
        assert result.error is None
        assert result.results['resistance'] == pytest.approx(24.0)

    def test_invalid_locked_value_is_hint(self):
        """A locked field without a valid number is a hint, not an error."""
        result = solve_ohms_law({'voltage': None, 'current': 0.5}, {'voltage', 'current'})
        assert result.error is None
        assert 'Voltage' in result.hint

    def test_wrong_lock_count_raises(self):
        with pytest.raises(ConfigurationError):
            solve_ohms_law({'voltage': 1.0}, {'voltage'})

    def test_round_trip(self):
        """Feeding any derived value back as a known reproduces the inputs."""
        V, I, R = 9.0, 0.003, 3000.0
        full = {'voltage': V, 'current': I, 'resistance': R}
        for pair in itertools.combinations(full, 2):
            known = {k: full[k] for k in pair}
            result = solve_ohms_law(known, set(pair))
            assert result.error is None
            merged = dict(known, **result.results)
            for name, value in full.items():
                assert merged[name] == pytest.approx(value)


class TestPower:
    """Test the V/I/R/P quadruple."""

    V, I, R, P = 12.0, 0.5, 24.0, 6.0

    @pytest.mark.parametrize('pair', list(itertools.combinations(
        ['voltage', 'current', 'resistance', 'power'], 2)))
    def test_every_pair_recovers_the_rest(self, pair):
        full = {'voltage': self.V, 'current': self.I, 'resistance': self.R, 'power': self.P}
        known = {k: full[k] for k in pair}
        result = solve_power(known, set(pair))
        assert result.error is None
        assert set(result.results) == set(full) - set(pair)
        for name, value in result.results.items():
            assert value == pytest.approx(full[name])

    def test_round_trip_through_derived_pair(self):
        """V, I → R, P; then R, P → V, I reproduces the starting pair."""
        first = solve_power(*_inputs(voltage=5.0, current=0.02))
        R, P = first.results['resistance'], first.results['power']
        second = solve_power(*_inputs(resistance=R, power=P))
        assert second.results['voltage'] == pytest.approx(5.0)
        assert second.results['current'] == pytest.approx(0.02)

    def test_zero_current_with_voltage_is_error(self):
        result = solve_power(*_inputs(voltage=12.0, current=0.0))
        assert result.error is not None
        _assert_finite(result)

    def test_zero_resistance_with_voltage_is_error(self):
        assert solve_power(*_inputs(voltage=12.0, resistance=0.0)).error is not None

    def test_zero_voltage_with_power_is_error(self):
        assert solve_power(*_inputs(voltage=0.0, power=5.0)).error is not None

    def test_zero_power_with_voltage_is_error(self):
        assert solve_power(*_inputs(voltage=5.0, power=0.0)).error is not None

    def test_zero_current_with_power_is_error(self):
        assert solve_power(*_inputs(current=0.0, power=5.0)).error is not None

    def test_negative_power_in_resistor_is_error(self):
        result = solve_power(*_inputs(resistance=10.0, power=-1.0))
        assert result.error is not None
        assert result.results == {}

    def test_zero_resistance_with_power_is_error(self):
        assert solve_power(*_inputs(resistance=0.0, power=1.0)).error is not None

    def test_negative_known_resistance_is_error(self):
        assert solve_power(*_inputs(current=1.0, resistance=-1.0)).error is not None

    def test_derived_negative_resistance_is_error(self):
        assert solve_power(*_inputs(voltage=5.0, power=-1.0)).error is not None

    def test_current_and_resistance_zero_current(self):
        """Zero current through a resistor is valid: nothing flows."""
        result = solve_power(*_inputs(current=0.0, resistance=100.0))
        assert result.error is None
        assert result.results['voltage'] == pytest.approx(0.0)
        assert result.results['power'] == pytest.approx(0.0)

    def test_hint_for_invalid_input(self):
        result = solve_power({'voltage': 5.0, 'power': None}, {'voltage', 'power'})
        assert result.hint is not None
        assert result.error is None


class TestVoltageDivider:
    """Test Vout = Vin · R2 / (R1 + R2)."""

    FULL = {'vin': 12.0, 'r1': 6000.0, 'r2': 6000.0, 'vout': 6.0}

    @pytest.mark.parametrize('unknown', ['vin', 'r1', 'r2', 'vout'])
    def test_any_three_recover_the_fourth(self, unknown):
        known = {k: v for k, v in self.FULL.items() if k != unknown}
        result = solve_voltage_divider(known, set(known))
        assert result.error is None
        assert result.results[unknown] == pytest.approx(self.FULL[unknown])

    def test_uneven_divider(self):
        result = solve_voltage_divider(*_inputs(vin=5.0, r1=8000.0, r2=5000.0))
        assert result.results['vout'] == pytest.approx(1.923, abs=1e-3)

    def test_zero_total_resistance_is_error(self):
        assert solve_voltage_divider(*_inputs(vin=5.0, r1=0.0, r2=0.0)).error is not None

    def test_negative_resistor_is_error(self):
        assert solve_voltage_divider(*_inputs(vin=5.0, r1=-1.0, r2=1000.0)).error is not None

    def test_vout_above_vin_is_error(self):
        assert solve_voltage_divider(*_inputs(vin=5.0, r1=1000.0, vout=6.0)).error is not None

    def test_vout_equal_vin_for_r2_is_error(self):
        assert solve_voltage_divider(*_inputs(vin=5.0, r1=1000.0, vout=5.0)).error is not None

    def test_zero_r2_for_vin_is_error(self):
        assert solve_voltage_divider(*_inputs(r1=1000.0, r2=0.0, vout=1.0)).error is not None

    def test_needs_three_known_values(self):
        with pytest.raises(ConfigurationError):
            solve_voltage_divider(*_inputs(vin=5.0, r1=1000.0))


class TestAnalyzeVoltageDivider:
    """Test the full divider analysis."""

    def test_equal_resistors(self):
        result = analyze_voltage_divider(12.0, 6000.0, 6000.0)
        assert result['total_resistance'] == pytest.approx(12000.0)
        assert result['current'] == pytest.approx(1e-3)
        assert result['voltage_drop_r1'] == pytest.approx(6.0)
        assert result['vout'] == pytest.approx(6.0)

    def test_tolerance_range_brackets_nominal(self):
        result = analyze_voltage_divider(9.0, 1000.0, 2000.0, tolerance=0.05)
        assert result['vout_min'] < result['vout'] < result['vout_max']
        assert result['vout'] == pytest.approx(6.0)

    def test_zero_tolerance_collapses_range(self):
        result = analyze_voltage_divider(9.0, 1000.0, 2000.0, tolerance=0.0)
        assert result['vout_min'] == pytest.approx(result['vout_max'])

    def test_invalid_r1_raises(self):
        with pytest.raises(ValueError):
            analyze_voltage_divider(5.0, 0.0, 1000.0)

    def test_negative_r2_raises(self):
        with pytest.raises(ValueError):
            analyze_voltage_divider(5.0, 1000.0, -1.0)


class TestDomainRegistry:
    """Test domain lookup and configuration."""

    def test_known_domains(self):
        assert set(DOMAINS) == {'ohms_law', 'power', 'voltage_divider'}
        assert [d.name for d in list_domains()] == ['ohms_law', 'power', 'voltage_divider']

    def test_unknown_domain_raises(self):
        with pytest.raises(ConfigurationError):
            get_domain('resistor_color')

    def test_required_inputs(self):
        assert get_domain('ohms_law').required_inputs == 2
        assert get_domain('power').required_inputs == 2
        assert get_domain('voltage_divider').required_inputs == 3

    def test_describe(self):
        info = get_domain('ohms_law').describe()
        assert [v['name'] for v in info['variables']] == ['voltage', 'current', 'resistance']
        assert 'mA' in info['variables'][1]['units']

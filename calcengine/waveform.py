"""
Closed-form waveform sampling.

Generates evenly spaced samples of periodic signals over a time window:

    sine:      A·sin(2πft + φ) + offset
    square:    +A for the first half of each period, −A for the second
    triangle:  −A → +A over the first half period, back to −A over the second
    sawtooth:  −A → +A over each period

Phase is given in degrees; for the piecewise shapes it becomes a time shift
of (phase/360)·P. Sample times are in seconds, voltages in volts.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

import numpy as np


class WaveformType(str, Enum):
    SINE = "sine"
    SQUARE = "square"
    TRIANGLE = "triangle"
    SAWTOOTH = "sawtooth"


@dataclass(frozen=True)
class WaveformParams:
    amplitude: float = 5.0          # V
    frequency: float = 1.0          # Hz
    phase: float = 0.0              # degrees
    dc_offset: float = 0.0          # V
    sampling_rate_hz: float = 1000.0
    time_window_ms: float = 1000.0
    type: WaveformType = WaveformType.SINE


@dataclass(frozen=True)
class DataPoint:
    time: float     # s
    voltage: float  # V


def _validate(params: WaveformParams, num_points: int) -> None:
    if num_points < 1:
        raise ValueError(f"num_points must be at least 1, got {num_points}")
    if params.frequency < 0:
        raise ValueError(f"Frequency must be non-negative, got {params.frequency}")
    if params.time_window_ms < 0:
        raise ValueError(f"Time window must be non-negative, got {params.time_window_ms}")


def sample_times(params: WaveformParams, num_points: int) -> np.ndarray:
    """
    Evenly spaced sample times (s) over [0, time_window_ms/1000].

    A single point is placed at t = 0.
    """
    _validate(params, num_points)
    window_s = params.time_window_ms / 1000.0
    if num_points == 1:
        return np.zeros(1)
    return np.arange(num_points) * (window_s / (num_points - 1))


def default_point_count(params: WaveformParams) -> int:
    """Number of samples the sampling rate gives over the time window (at least 1)."""
    if params.sampling_rate_hz <= 0:
        raise ValueError(f"Sampling rate must be positive, got {params.sampling_rate_hz}")
    count = params.time_window_ms / 1000.0 * params.sampling_rate_hz
    if not math.isfinite(count):
        raise ValueError(f"Time window and sampling rate give a non-finite point count: {count}")
    return max(int(math.floor(count)), 1)


def _to_points(t: np.ndarray, v: np.ndarray) -> List[DataPoint]:
    return [DataPoint(time=float(ti), voltage=float(vi)) for ti, vi in zip(t, v)]


def _time_into_cycle(params: WaveformParams, t: np.ndarray) -> np.ndarray:
    """Phase-shifted time within the current period, always in [0, P)."""
    period = 1.0 / params.frequency
    phase_s = (params.phase / 360.0) * period
    return np.mod(t + phase_s + period, period)


def generate_sine_wave(params: WaveformParams, num_points: int) -> List[DataPoint]:
    t = sample_times(params, num_points)
    phase_rad = np.radians(params.phase)
    v = params.amplitude * np.sin(2 * np.pi * params.frequency * t + phase_rad) + params.dc_offset
    return _to_points(t, v)


def generate_square_wave(params: WaveformParams, num_points: int) -> List[DataPoint]:
    """Square wave; at 0 Hz it is a constant amplitude + offset DC line."""
    t = sample_times(params, num_points)
    if params.frequency == 0:
        v = np.full_like(t, params.amplitude + params.dc_offset)
        return _to_points(t, v)

    period = 1.0 / params.frequency
    tau = _time_into_cycle(params, t)
    v = np.where(tau < period / 2, params.amplitude, -params.amplitude) + params.dc_offset
    return _to_points(t, v)


def generate_triangle_wave(params: WaveformParams, num_points: int) -> List[DataPoint]:
    """Triangle wave; at 0 Hz only the DC offset remains."""
    t = sample_times(params, num_points)
    if params.frequency == 0:
        return _to_points(t, np.full_like(t, params.dc_offset))

    A = params.amplitude
    period = 1.0 / params.frequency
    tau = _time_into_cycle(params, t)
    rising = (4 * A / period) * tau - A
    falling = A - (4 * A / period) * (tau - period / 2)
    v = np.where(tau < period / 2, rising, falling) + params.dc_offset
    return _to_points(t, v)


def generate_sawtooth_wave(params: WaveformParams, num_points: int) -> List[DataPoint]:
    """Sawtooth wave; at 0 Hz only the DC offset remains."""
    t = sample_times(params, num_points)
    if params.frequency == 0:
        return _to_points(t, np.full_like(t, params.dc_offset))

    A = params.amplitude
    period = 1.0 / params.frequency
    tau = _time_into_cycle(params, t)
    v = (2 * A / period) * tau - A + params.dc_offset
    return _to_points(t, v)


GENERATORS: Dict[WaveformType, Callable[[WaveformParams, int], List[DataPoint]]] = {
    WaveformType.SINE: generate_sine_wave,
    WaveformType.SQUARE: generate_square_wave,
    WaveformType.TRIANGLE: generate_triangle_wave,
    WaveformType.SAWTOOTH: generate_sawtooth_wave,
}


def generate_waveform(params: WaveformParams, num_points: Optional[int] = None) -> List[DataPoint]:
    """
    Sample the waveform selected by `params.type`.

    Args:
        params: Shape and signal parameters.
        num_points: Sample count. Defaults to the count implied by the
            sampling rate over the time window.
    """
    if num_points is None:
        num_points = default_point_count(params)
    return GENERATORS[WaveformType(params.type)](params, num_points)

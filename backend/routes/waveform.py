"""Waveform routes: sampled sine, square, triangle and sawtooth signals."""

import math

from fastapi import APIRouter, HTTPException

from backend import config
from backend.models import WaveformRequest, WaveformResponse
from calcengine.waveform import WaveformParams, default_point_count, generate_waveform

router = APIRouter()


def _point_count(body: WaveformRequest, params: WaveformParams) -> int:
    if body.num_points is None:
        # Checked before flooring so an overflowing window × rate is a 422, not a crash
        implied = body.time_window_ms / 1000.0 * body.sampling_rate_hz
        if not implied <= config.MAX_WAVEFORM_POINTS:
            raise HTTPException(
                status_code=422,
                detail=f"Too many points ({implied:g}); the limit is {config.MAX_WAVEFORM_POINTS}",
            )
        return default_point_count(params)
    if body.num_points > config.MAX_WAVEFORM_POINTS:
        raise HTTPException(
            status_code=422,
            detail=f"Too many points ({body.num_points}); the limit is {config.MAX_WAVEFORM_POINTS}",
        )
    return body.num_points


@router.post("/waveform", response_model=WaveformResponse)
async def sample_waveform(body: WaveformRequest):
    """Sample a waveform over its time window. Times are in seconds."""
    params = WaveformParams(
        amplitude=body.amplitude,
        frequency=body.frequency,
        phase=body.phase,
        dc_offset=body.dc_offset,
        sampling_rate_hz=body.sampling_rate_hz,
        time_window_ms=body.time_window_ms,
        type=body.type,
    )
    num_points = _point_count(body, params)

    try:
        points = generate_waveform(params, num_points)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    voltage = [p.voltage for p in points]
    if not all(math.isfinite(v) for v in voltage):
        raise HTTPException(status_code=422, detail="Waveform values overflow; reduce amplitude or offset")

    return WaveformResponse(type=body.type, time=[p.time for p in points], voltage=voltage)

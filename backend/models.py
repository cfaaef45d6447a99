"""Pydantic models for the calculator API requests and responses."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from calcengine.calculator import Calculator
from calcengine.waveform import WaveformType


# --- Enums ---

class EventType(str, Enum):
    VALUE = "value"
    UNIT = "unit"
    BLUR = "blur"
    RESET = "reset"


# --- Catalogue ---

class VariableInfo(BaseModel):
    name: str
    label: str
    quantity: str
    default_unit: str
    units: list[str]


class CalculatorSummary(BaseModel):
    """One calculator domain as offered to the UI."""
    name: str
    title: str
    formula: str
    required_inputs: int
    variables: list[VariableInfo]


class CalculatorListResponse(BaseModel):
    calculators: list[CalculatorSummary]


# --- Calculator state ---

class FieldEdit(BaseModel):
    variable: str
    value: str = ""
    unit: Optional[str] = None


class SolveRequest(BaseModel):
    edits: list[FieldEdit] = Field(..., max_length=64)
    units: dict[str, str] = {}


class CalculatorEvent(BaseModel):
    type: EventType
    variable: Optional[str] = None
    value: Optional[str] = None
    unit: Optional[str] = None


class CalculatorStateResponse(BaseModel):
    domain: str
    values: dict[str, str]
    units: dict[str, str]
    locked_fields: list[str]
    touched_fields: list[str]
    message: Optional[str] = None
    message_kind: Optional[str] = None
    message_title: Optional[str] = None
    visible_message: Optional[str] = None
    pending: bool = False

    @classmethod
    def from_calculator(cls, calc: Calculator) -> CalculatorStateResponse:
        kind = calc.message_kind
        return cls(
            domain=calc.domain.name,
            values=dict(calc.values),
            units=dict(calc.units),
            locked_fields=calc.ordered(calc.locked_fields),
            touched_fields=calc.ordered(calc.touched_fields),
            message=calc.error,
            message_kind=kind.value if kind else None,
            message_title=kind.title if kind else None,
            visible_message=calc.visible_message,
            pending=calc.pending,
        )


class SessionResponse(BaseModel):
    session_id: str
    state: CalculatorStateResponse


# --- Voltage divider analysis ---

class DividerAnalysisRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    vin: float
    r1: float = Field(..., gt=0)
    r2: float = Field(..., ge=0)
    tolerance: float = Field(0.05, ge=0, le=0.5)


class DividerAnalysisResponse(BaseModel):
    total_resistance: float
    current: float
    voltage_drop_r1: float
    voltage_drop_r2: float
    vout: float
    vout_min: float
    vout_max: Optional[float] = None
    tolerance: float
    formula: str


# --- Waveform ---

class WaveformRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    type: WaveformType = WaveformType.SINE
    amplitude: float = 5.0
    frequency: float = Field(1.0, ge=0)
    phase: float = 0.0
    dc_offset: float = 0.0
    sampling_rate_hz: float = Field(1000.0, gt=0)
    time_window_ms: float = Field(1000.0, ge=0)
    num_points: Optional[int] = Field(None, ge=1)


class WaveformResponse(BaseModel):
    type: WaveformType
    time: list[float]
    voltage: list[float]

"""Calculator routes: catalogue, one-shot solve, session creation, divider analysis."""

import math

from fastapi import APIRouter, HTTPException, Request

from backend import config
from backend.models import (
    CalculatorListResponse,
    CalculatorStateResponse,
    CalculatorSummary,
    DividerAnalysisRequest,
    DividerAnalysisResponse,
    SessionResponse,
    SolveRequest,
)
from calcengine.calculator import Calculator
from calcengine.solvers import Domain, analyze_voltage_divider, get_domain, list_domains
from calcengine.units import ConfigurationError

router = APIRouter()


def _domain_or_404(name: str) -> Domain:
    try:
        return get_domain(name)
    except ConfigurationError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/calculators", response_model=CalculatorListResponse)
async def list_calculators():
    """List the calculator domains with their variables and unit options."""
    return CalculatorListResponse(
        calculators=[CalculatorSummary(**d.describe()) for d in list_domains()]
    )


@router.post("/calculators/{domain}/solve", response_model=CalculatorStateResponse)
async def solve(domain: str, body: SolveRequest):
    """
    Replay a sequence of field edits through a fresh calculator.

    Edits are applied in order with the same locking rules as an interactive
    session, so a third edit unlocks the oldest locked field.
    """
    calc_domain = _domain_or_404(domain)
    try:
        calc = Calculator(calc_domain, initial_units=body.units, debounce_ms=None)
        for edit in body.edits:
            if edit.unit is not None:
                calc.on_unit_change(edit.variable, edit.unit)
            calc.on_value_change(edit.variable, edit.value)
            calc.on_blur(edit.variable)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return CalculatorStateResponse.from_calculator(calc)


@router.post("/calculators/{domain}/sessions", response_model=SessionResponse, status_code=201)
async def create_session(domain: str, request: Request):
    """Start a live calculator whose recomputes are debounced."""
    calc_domain = _domain_or_404(domain)
    store = request.app.state.calculator_store
    await store.cleanup_expired()

    calc = Calculator(calc_domain, debounce_ms=config.RECOMPUTE_DEBOUNCE_MS)
    session = await store.create_session(calc)
    return SessionResponse(session_id=session.id, state=CalculatorStateResponse.from_calculator(calc))


@router.post("/voltage-divider/analysis", response_model=DividerAnalysisResponse)
async def divider_analysis(body: DividerAnalysisRequest):
    """Loop current, resistor drops and the Vout range for toleranced resistors."""
    try:
        result = analyze_voltage_divider(body.vin, body.r1, body.r2, tolerance=body.tolerance)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if not all(math.isfinite(v) for v in result.values() if isinstance(v, float)):
        raise HTTPException(status_code=422, detail="Divider values overflow for these inputs")
    return DividerAnalysisResponse(**result)

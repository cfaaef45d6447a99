"""Calculator session routes: state, events and teardown for live calculators."""

import logging

from fastapi import APIRouter, HTTPException, Query, Request

from backend.models import CalculatorEvent, CalculatorStateResponse, EventType
from backend.sessions import CalculatorSession
from calcengine.units import ConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_session(request: Request, session_id: str) -> CalculatorSession:
    session = await request.app.state.calculator_store.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Calculator session not found")
    return session


@router.get("/calculator-sessions/{session_id}", response_model=CalculatorStateResponse)
async def get_session_state(session_id: str, request: Request):
    """Current state of a live calculator."""
    session = await _get_session(request, session_id)
    return CalculatorStateResponse.from_calculator(session.calculator)


@router.delete("/calculator-sessions/{session_id}")
async def delete_session(session_id: str, request: Request):
    """Close a calculator; any pending recompute is dropped."""
    deleted = await request.app.state.calculator_store.delete_session(session_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Calculator session not found")
    return {"status": "deleted"}


@router.post("/calculator-sessions/{session_id}/events", response_model=CalculatorStateResponse)
async def send_event(
    session_id: str,
    event: CalculatorEvent,
    request: Request,
    flush: bool = Query(False, description="Recompute now instead of after the debounce window"),
):
    """
    Apply one UI event to a live calculator.

    Value and unit events schedule a debounced recompute; the returned state
    has `pending` set until it runs. Pass `flush=true` to get the recomputed
    state in the same response.
    """
    session = await _get_session(request, session_id)
    calc = session.calculator

    if event.type != EventType.RESET and not event.variable:
        raise HTTPException(status_code=422, detail=f"'{event.type.value}' events need a variable")

    try:
        if event.type == EventType.VALUE:
            calc.on_value_change(event.variable, event.value)
        elif event.type == EventType.UNIT:
            if not event.unit:
                raise HTTPException(status_code=422, detail="'unit' events need a unit")
            calc.on_unit_change(event.variable, event.unit)
        elif event.type == EventType.BLUR:
            calc.on_blur(event.variable)
        else:
            calc.on_reset()
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except RuntimeError as e:
        # Session deleted while this request was in flight
        logger.warning("Event for closed session %s: %s", session_id, e)
        raise HTTPException(status_code=404, detail="Calculator session not found")

    if flush:
        calc.flush()
    await request.app.state.calculator_store.update_session(session)
    return CalculatorStateResponse.from_calculator(calc)

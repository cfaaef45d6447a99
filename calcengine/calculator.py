"""
Bidirectional calculator state: field locking and debounced recompute.

The user may type into any field of a domain in any order. Fields holding
user input are "locked"; at most `domain.required_inputs` of them (two for
Ohm's law and power) are locked at a time. Typing into a further field
unlocks and clears the first locked field in the domain's declared variable
order, never the field being edited.

Every mutation schedules a recompute. The recompute normalizes the display
strings to base units, runs the domain solver once the required number of
fields is locked, and writes formatted results into the unlocked fields
only. A recompute with no intervening edit changes nothing.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Set

from calcengine.debounce import Debouncer
from calcengine.solvers import Domain, DomainResult
from calcengine.units import ConfigurationError, format_result, normalize_unit, to_base

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 300


class MessageKind(str, Enum):
    HINT = "hint"
    ERROR = "error"

    @property
    def title(self) -> str:
        return "Input Needed" if self is MessageKind.HINT else "Error"


@dataclass
class CalculatorState:
    values: Dict[str, str]
    units: Dict[str, str]
    locked_fields: Set[str] = field(default_factory=set)
    touched_fields: Set[str] = field(default_factory=set)
    message: Optional[str] = None
    message_kind: Optional[MessageKind] = None

    def copy(self) -> "CalculatorState":
        return CalculatorState(
            values=dict(self.values),
            units=dict(self.units),
            locked_fields=set(self.locked_fields),
            touched_fields=set(self.touched_fields),
            message=self.message,
            message_kind=self.message_kind,
        )


def more_values_hint(needed: int) -> str:
    if needed == 1:
        return "Enter one more value."
    return f"Enter {needed} more values."


class Calculator:
    """
    One calculator instance for a domain.

    Args:
        domain: Variables, units and solver of the calculator.
        initial_values: Display strings to start from (default: all empty).
            Non-empty initial values count as user input and are locked.
        initial_units: Units to start from (default: the domain's units).
        debounce_ms: Quiet period before a recompute. None or 0 recomputes
            synchronously on every mutation.
        loop: Event loop for the debounce timer (default: the running loop).
    """

    def __init__(
        self,
        domain: Domain,
        initial_values: Optional[Mapping[str, str]] = None,
        initial_units: Optional[Mapping[str, str]] = None,
        debounce_ms: Optional[float] = DEFAULT_DEBOUNCE_MS,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.domain = domain
        self._initial_values = {v: "" for v in domain.variable_order}
        for variable, text in (initial_values or {}).items():
            self._require_variable(variable)
            self._initial_values[variable] = "" if text is None else str(text)

        self._initial_units = dict(domain.initial_units)
        for variable, unit in (initial_units or {}).items():
            self._initial_units[variable] = self._checked_unit(variable, unit)

        filled = [v for v in domain.variable_order if self._initial_values[v].strip()]
        if len(filled) > domain.required_inputs:
            raise ConfigurationError(
                f"{domain.title}: at most {domain.required_inputs} initial values may be set, got {filled}"
            )

        self._debouncer = Debouncer(debounce_ms / 1000.0, self._on_timer, loop) if debounce_ms else None
        self._closed = False
        self._state = self._initial_state()
        if self._state.locked_fields:
            self.recompute()

    # --- observables ---

    @property
    def values(self) -> Mapping[str, str]:
        return MappingProxyType(self._state.values)

    @property
    def units(self) -> Mapping[str, str]:
        return MappingProxyType(self._state.units)

    @property
    def error(self) -> Optional[str]:
        """Current hint or error text, whether or not it should be shown yet."""
        return self._state.message

    @property
    def message_kind(self) -> Optional[MessageKind]:
        return self._state.message_kind

    @property
    def locked_fields(self) -> FrozenSet[str]:
        return frozenset(self._state.locked_fields)

    @property
    def touched_fields(self) -> FrozenSet[str]:
        return frozenset(self._state.touched_fields)

    @property
    def visible_message(self) -> Optional[str]:
        """
        The message the user should see right now.

        Errors show immediately. Hints only show once a field has been
        blurred, so an untouched calculator never nags.
        """
        kind = self._state.message_kind
        if kind is MessageKind.ERROR:
            return self._state.message
        if kind is MessageKind.HINT and self._state.touched_fields:
            return self._state.message
        return None

    @property
    def pending(self) -> bool:
        return self._debouncer is not None and self._debouncer.pending

    @property
    def closed(self) -> bool:
        return self._closed

    def ordered(self, variables) -> List[str]:
        """Variables sorted by the domain's declared order."""
        return [v for v in self.domain.variable_order if v in variables]

    def snapshot(self) -> CalculatorState:
        return self._state.copy()

    # --- mutators ---

    def on_value_change(self, variable: str, value: Optional[str]) -> None:
        self._require_open()
        self._require_variable(variable)
        text = "" if value is None else str(value)
        state = self._state

        if not text.strip():
            state.locked_fields.discard(variable)
        elif variable not in state.locked_fields:
            if len(state.locked_fields) >= self.domain.required_inputs:
                evicted = next(
                    v for v in self.domain.variable_order
                    if v != variable and v in state.locked_fields
                )
                state.locked_fields.discard(evicted)
                state.values[evicted] = ""
                logger.debug("%s: %s locked, unlocking %s", self.domain.name, variable, evicted)
            state.locked_fields.add(variable)

        state.values[variable] = text
        state.message = None
        state.message_kind = None
        self._schedule()

    def on_unit_change(self, variable: str, unit: str) -> None:
        self._require_open()
        unit = self._checked_unit(variable, unit)
        if self._state.units[variable] == unit:
            return
        self._state.units[variable] = unit
        self._schedule()

    def on_blur(self, variable: str) -> None:
        self._require_open()
        self._require_variable(variable)
        self._state.touched_fields.add(variable)

    def on_reset(self) -> None:
        self._require_open()
        if self._debouncer is not None:
            self._debouncer.cancel()
        self._state = self._initial_state()
        if self._state.locked_fields:
            self.recompute()

    def flush(self) -> bool:
        """Run a pending recompute immediately. Returns True if one was pending."""
        if self._debouncer is None or self._closed:
            return False
        return self._debouncer.flush()

    def close(self) -> None:
        """Discard the calculator: a pending recompute will never be applied."""
        self._closed = True
        if self._debouncer is not None:
            self._debouncer.cancel()

    # --- recompute ---

    def recompute(self) -> bool:
        """
        Run one pass of the recompute algorithm.

        Returns:
            True if any value, unit or message changed.
        """
        if self._closed:
            return False

        domain = self.domain
        state = self._state
        locked = frozenset(state.locked_fields)
        numeric = {v: to_base(state.values[v], state.units[v]) for v in domain.variable_order}
        new_values = dict(state.values)
        new_units = dict(state.units)

        if len(locked) != domain.required_inputs:
            for variable in domain.variable_order:
                if variable not in locked:
                    new_values[variable] = ""
            if locked and all(numeric[v] is not None for v in locked):
                hint = more_values_hint(domain.required_inputs - len(locked))
                return self._apply(new_values, new_units, hint, MessageKind.HINT)
            return self._apply(new_values, new_units, None, None)

        try:
            result = domain.solve(numeric, locked)
        except ArithmeticError:
            logger.warning("%s solver failed for %s", domain.name, sorted(locked), exc_info=True)
            result = DomainResult(error="Calculation failed for these values.")

        for variable in domain.variable_order:
            if variable in locked:
                continue
            formatted = format_result(
                result.results.get(variable),
                domain.quantities[variable],
                state.units[variable],
                auto_scale=domain.auto_scale,
            )
            new_values[variable] = formatted.display_value
            new_units[variable] = formatted.unit

        # State is only replaced when something differs, so a second pass is a no-op
        if result.error:
            return self._apply(new_values, new_units, result.error, MessageKind.ERROR)
        if result.hint:
            return self._apply(new_values, new_units, result.hint, MessageKind.HINT)
        return self._apply(new_values, new_units, None, None)

    # --- internals ---

    def _initial_state(self) -> CalculatorState:
        return CalculatorState(
            values=dict(self._initial_values),
            units=dict(self._initial_units),
            locked_fields={v for v, text in self._initial_values.items() if text.strip()},
        )

    def _apply(self, values, units, message, kind) -> bool:
        state = self._state
        changed = (
            values != state.values
            or units != state.units
            or message != state.message
            or kind != state.message_kind
        )
        if changed:
            state.values = values
            state.units = units
            state.message = message
            state.message_kind = kind
            logger.debug("%s recomputed: values=%s units=%s message=%r", self.domain.name, values, units, message)
        return changed

    def _schedule(self) -> None:
        if self._debouncer is None:
            self.recompute()
        else:
            self._debouncer.trigger()

    def _on_timer(self) -> None:
        if self._closed:
            return
        self.recompute()

    def _require_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"{self.domain.title} calculator is closed")

    def _require_variable(self, variable: str) -> None:
        if variable not in self.domain.quantities:
            raise ConfigurationError(
                f"Unknown variable '{variable}' for {self.domain.title}. "
                f"Must be one of: {list(self.domain.variable_order)}"
            )

    def _checked_unit(self, variable: str, unit: str) -> str:
        self._require_variable(variable)
        symbol = normalize_unit(unit)
        if symbol not in self.domain.unit_options(variable):
            raise ConfigurationError(f"'{unit}' is not a valid unit for {variable}")
        return symbol

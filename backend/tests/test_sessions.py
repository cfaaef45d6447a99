"""
Tests for the in-memory calculator session store.

Validates:
1. Expired sessions are removed and their calculators closed
2. A recompute pending on an expired session never applies
3. Fresh sessions survive cleanup; activity resets the TTL clock
4. Deleting and shutting down close calculators
"""

import asyncio
from datetime import datetime, timedelta

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from backend.sessions import InMemoryCalculatorStore
from calcengine.calculator import Calculator
from calcengine.solvers import get_domain


def _backdate(session, hours):
    session.updated_at = datetime.utcnow() - timedelta(hours=hours)


class TestExpiry:
    """Test cleanup_expired()."""

    def test_expired_session_is_removed_and_closed(self):
        async def scenario():
            store = InMemoryCalculatorStore(ttl_hours=1)
            session = await store.create_session(Calculator(get_domain('ohms_law'), debounce_ms=None))
            _backdate(session, 2)
            removed = await store.cleanup_expired()
            return removed, await store.get_session(session.id), session.calculator

        removed, found, calc = asyncio.run(scenario())
        assert removed == 1
        assert found is None
        assert calc.closed

    def test_pending_recompute_never_applies_after_expiry(self):
        async def scenario():
            store = InMemoryCalculatorStore(ttl_hours=1)
            calc = Calculator(get_domain('ohms_law'), debounce_ms=20)
            session = await store.create_session(calc)
            calc.on_value_change('voltage', '12')
            calc.on_value_change('current', '0.12')
            assert calc.pending

            _backdate(session, 2)
            await store.cleanup_expired()
            await asyncio.sleep(0.08)
            return calc

        calc = asyncio.run(scenario())
        assert calc.closed
        assert not calc.pending
        assert calc.values['resistance'] == ''

    def test_fresh_session_survives(self):
        async def scenario():
            store = InMemoryCalculatorStore(ttl_hours=1)
            old = await store.create_session(Calculator(get_domain('power'), debounce_ms=None))
            fresh = await store.create_session(Calculator(get_domain('power'), debounce_ms=None))
            _backdate(old, 2)
            removed = await store.cleanup_expired()
            return removed, await store.get_session(fresh.id), fresh.calculator

        removed, found, calc = asyncio.run(scenario())
        assert removed == 1
        assert found is not None
        assert not calc.closed

    def test_update_resets_ttl(self):
        async def scenario():
            store = InMemoryCalculatorStore(ttl_hours=1)
            session = await store.create_session(Calculator(get_domain('ohms_law'), debounce_ms=None))
            _backdate(session, 2)
            await store.update_session(session)
            return await store.cleanup_expired()

        assert asyncio.run(scenario()) == 0


class TestTeardown:
    """Test delete_session() and close_all()."""

    def test_delete_closes_calculator(self):
        async def scenario():
            store = InMemoryCalculatorStore()
            session = await store.create_session(Calculator(get_domain('ohms_law'), debounce_ms=None))
            first = await store.delete_session(session.id)
            second = await store.delete_session(session.id)
            return first, second, session.calculator

        first, second, calc = asyncio.run(scenario())
        assert first is True
        assert second is False
        assert calc.closed

    def test_close_all(self):
        async def scenario():
            store = InMemoryCalculatorStore()
            sessions = [
                await store.create_session(Calculator(get_domain(name), debounce_ms=None))
                for name in ('ohms_law', 'power')
            ]
            await store.close_all()
            return sessions, [await store.get_session(s.id) for s in sessions]

        sessions, found = asyncio.run(scenario())
        assert found == [None, None]
        assert all(s.calculator.closed for s in sessions)

"""In-memory store of live calculator sessions."""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from calcengine.calculator import Calculator

logger = logging.getLogger(__name__)


@dataclass
class CalculatorSession:
    calculator: Calculator
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


class InMemoryCalculatorStore:
    """Live calculators keyed by session id. Removing a session closes its calculator."""

    def __init__(self, ttl_hours: int = 24):
        self._sessions: dict[str, CalculatorSession] = {}
        self._lock = asyncio.Lock()
        self._ttl = timedelta(hours=ttl_hours)

    async def create_session(self, calculator: Calculator) -> CalculatorSession:
        session = CalculatorSession(calculator=calculator)
        async with self._lock:
            self._sessions[session.id] = session
        logger.info("Created %s session %s", calculator.domain.name, session.id)
        return session

    async def get_session(self, session_id: str) -> Optional[CalculatorSession]:
        async with self._lock:
            return self._sessions.get(session_id)

    async def update_session(self, session: CalculatorSession) -> None:
        session.updated_at = datetime.utcnow()

    async def delete_session(self, session_id: str) -> bool:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.calculator.close()
        logger.info("Deleted session %s", session_id)
        return True

    async def cleanup_expired(self) -> int:
        now = datetime.utcnow()
        async with self._lock:
            expired = [sid for sid, s in self._sessions.items() if now - s.updated_at > self._ttl]
            sessions = [self._sessions.pop(sid) for sid in expired]
        for session in sessions:
            session.calculator.close()
        if sessions:
            logger.info("Expired %d calculator sessions", len(sessions))
        return len(sessions)

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.calculator.close()

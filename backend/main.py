"""Calculator service: FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend import config
from backend.middleware.rate_limit import RateLimitMiddleware
from backend.routes import calculators, sessions, waveform
from backend.sessions import InMemoryCalculatorStore

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    store = InMemoryCalculatorStore(ttl_hours=config.CALCULATOR_SESSION_TTL_HOURS)
    app.state.calculator_store = store
    logger.info("Calculator store ready (debounce %d ms)", config.RECOMPUTE_DEBOUNCE_MS)
    yield
    await store.close_all()


app = FastAPI(
    title="EE Study Tools API",
    description="Bidirectional electrical calculators and waveform sampling",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS: allow the configured frontend plus local development origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL] if config.FRONTEND_URL else [],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    RateLimitMiddleware,
    requests_per_minute=config.RATE_LIMIT_PER_MINUTE,
    session_requests_per_minute=config.SESSION_CREATE_LIMIT_PER_MINUTE,
)

app.include_router(calculators.router, prefix="/api", tags=["Calculators"])
app.include_router(sessions.router, prefix="/api", tags=["Sessions"])
app.include_router(waveform.router, prefix="/api", tags=["Waveform"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": "ee-study-tools-backend"}

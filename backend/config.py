"""Environment configuration for the calculator service."""

import os

from dotenv import load_dotenv

load_dotenv()

FRONTEND_URL = os.getenv("FRONTEND_URL")
RECOMPUTE_DEBOUNCE_MS = int(os.getenv("RECOMPUTE_DEBOUNCE_MS", "300"))
CALCULATOR_SESSION_TTL_HOURS = int(os.getenv("CALCULATOR_SESSION_TTL_HOURS", "24"))
RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE", "120"))
SESSION_CREATE_LIMIT_PER_MINUTE = int(os.getenv("SESSION_CREATE_LIMIT_PER_MINUTE", "20"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Longest waveform a single request may sample
MAX_WAVEFORM_POINTS = 20000

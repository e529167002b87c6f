"""Centralized configuration: all env vars in one place."""
import os
import logging
from dotenv import load_dotenv

load_dotenv()

# --- Server ---
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "")

# --- WebSocket Security ---
WS_RATE_LIMIT_PER_SEC = 10  # max messages per second per client
MAX_WS_MESSAGE_SIZE = 4096  # bytes
MAX_PLAYER_NAME_LENGTH = 30

# --- Game ---
VALID_ROUNDS = (1, 2)
VALID_MODES = ("auto", "manual")
VALID_ROLES = ("admin", "player", "spectator")
ROUND_QUESTION_TYPES = {1: "multiple_choice", 2: "short_answer"}
QUESTION_TIME_LIMIT = int(os.getenv("QUESTION_TIME_LIMIT", "30"))  # ticks
TICK_SECONDS = float(os.getenv("TICK_SECONDS", "1.0"))
ADVANCE_DELAY_TICKS = 3  # pause after a resolved question before the next one
CHOICE_LETTERS = ("a", "b", "c", "d")

# --- Questions ---
QUESTIONS_FILE = os.getenv("QUESTIONS_FILE", "")  # empty = built-in demo set

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "")  # empty = stdout only


def setup_logging():
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if LOG_FILE:
        handlers.append(logging.FileHandler(LOG_FILE))
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )

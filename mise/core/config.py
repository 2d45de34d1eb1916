# mise/core/config.py
from __future__ import annotations
import os
import logging

# Scheduling knobs
STAGGER_MINUTES: int = int(os.getenv("STAGGER_MINUTES", "5"))
SLOT_ROUNDING_MINUTES: int = int(os.getenv("SLOT_ROUNDING_MINUTES", "5"))
UPCOMING_LIMIT: int = int(os.getenv("UPCOMING_LIMIT", "3"))

PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}

# Storage: "memory" keeps meals in process, "mongo" persists to MONGO_URI
MEAL_STORE: str = os.getenv("MEAL_STORE", "memory").strip().lower()
MEAL_TTL_SECONDS: int = int(os.getenv("MEAL_TTL_SECONDS", "0"))

MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB: str = os.getenv("MONGO_DB", "mise")
MONGO_MEALS_COL: str = os.getenv("MONGO_MEALS_COL", "meals")
MONGO_TASKS_COL: str = os.getenv("MONGO_TASKS_COL", "meal_tasks")

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "3001"))

# Global logging (module-level loggers inherit this)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
LOGGER = logging.getLogger("mise")

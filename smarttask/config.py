"""
SmartTask — Centralized configuration.

Loads all settings from .env / environment variables and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from smarttask/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Storage: one line-oriented text file per record type
    DATA_DIR: str = "data"
    ACCOUNTS_FILE: str = "data/students.txt"
    TASKS_FILE: str = "data/tasks.txt"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Password hashing cost (bcrypt log2 rounds)
    BCRYPT_ROUNDS: int = 12

    # Zone used for "now" in overdue / due-today checks; empty → host local time
    TIMEZONE: str = ""

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def parse_level(cls, v: str) -> str:
        return str(v).strip().upper() or "INFO"

    @field_validator("BCRYPT_ROUNDS", mode="before")
    @classmethod
    def parse_rounds(cls, v: str | int) -> int:
        rounds = int(v)
        if not 4 <= rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return rounds

    @field_validator("TIMEZONE")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        v = v.strip()
        if v:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"Unknown TIMEZONE {v!r}") from exc
        return v


def _load_settings() -> Settings:
    """Load settings from environment."""
    data_dir = os.getenv("DATA_DIR", "data")
    return Settings(
        DATA_DIR=data_dir,
        ACCOUNTS_FILE=os.getenv("ACCOUNTS_FILE", str(Path(data_dir) / "students.txt")),
        TASKS_FILE=os.getenv("TASKS_FILE", str(Path(data_dir) / "tasks.txt")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        BCRYPT_ROUNDS=os.getenv("BCRYPT_ROUNDS", "12"),
        TIMEZONE=os.getenv("TIMEZONE", ""),
    )


# Singleton, imported by all other modules as:
#   from smarttask.config import settings
settings = _load_settings()

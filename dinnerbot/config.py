"""
Dinner Rota Bot — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from datetime import time as dt_time
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from dinnerbot/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)

# python-telegram-bot numbers weekdays from Sunday (0) to Saturday (6)
WEEKDAYS = {
    "sun": 0, "mon": 1, "tue": 2, "wed": 3, "thu": 4, "fri": 5, "sat": 6,
}


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str
    BOT_USERNAME: str = ""       # without the leading "@"

    # LLM — provider-agnostic (gemini, anthropic, openai, cohere)
    LLM_PROVIDER: str = "gemini"
    LLM_MODEL: str = ""          # empty → smart default per provider
    LLM_API_KEY: str

    # SQLite
    DATABASE_PATH: str = "data/dinners.db"

    # Security
    ALLOWED_USER_IDS: list[int] = []

    # Weekly jobs
    TIMEZONE: str = "America/Toronto"
    REMINDER_CHAT_ID: int = 0    # 0 → reminders disabled
    REMINDER_DAY: int = WEEKDAYS["thu"]
    REMINDER_TIME: dt_time = dt_time(18, 30)
    ADVANCE_DAY: int = WEEKDAYS["mon"]
    ADVANCE_TIME: dt_time = dt_time(0, 5)

    # Seed rotation: [("<@1>", "<@2>"), ...]
    ROTATION_PAIRS: list[tuple[str, str]] = []
    ROTATION_START: str = ""     # ISO date, empty → current week

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("REMINDER_CHAT_ID", mode="before")
    @classmethod
    def parse_chat_id(cls, v: str | int) -> int:
        if isinstance(v, str) and not v.strip():
            return 0
        return int(v)

    @field_validator("REMINDER_DAY", "ADVANCE_DAY", mode="before")
    @classmethod
    def parse_weekday(cls, v: str | int) -> int:
        if isinstance(v, int):
            return v
        key = v.strip().lower()[:3]
        if key not in WEEKDAYS:
            raise ValueError(f"Unknown weekday: {v!r}")
        return WEEKDAYS[key]

    @field_validator("REMINDER_TIME", "ADVANCE_TIME", mode="before")
    @classmethod
    def parse_time(cls, v: str | dt_time) -> dt_time:
        if isinstance(v, dt_time):
            return v
        hour, minute = v.strip().split(":")
        return dt_time(int(hour), int(minute))

    @field_validator("ROTATION_PAIRS", mode="before")
    @classmethod
    def parse_pairs(cls, v: str | list) -> list[tuple[str, str]]:
        """Parse "111:222,333:444" into canonical mention pairs."""
        if isinstance(v, list):
            return v
        pairs: list[tuple[str, str]] = []
        for chunk in v.split(","):
            if not chunk.strip():
                continue
            first, second = (f"<@{part.strip()}>" for part in chunk.split(":"))
            pairs.append((first, second))
        return pairs


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")
    llm_api_key = os.getenv("LLM_API_KEY", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    if not llm_api_key or llm_api_key.startswith("your-"):
        print("ERROR: LLM_API_KEY is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        BOT_USERNAME=os.getenv("BOT_USERNAME", "").lstrip("@"),
        LLM_PROVIDER=os.getenv("LLM_PROVIDER", "gemini"),
        LLM_MODEL=os.getenv("LLM_MODEL", ""),
        LLM_API_KEY=llm_api_key,
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/dinners.db"),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        TIMEZONE=os.getenv("TIMEZONE", "America/Toronto"),
        REMINDER_CHAT_ID=os.getenv("REMINDER_CHAT_ID", "0"),
        REMINDER_DAY=os.getenv("REMINDER_DAY", "thu"),
        REMINDER_TIME=os.getenv("REMINDER_TIME", "18:30"),
        ADVANCE_DAY=os.getenv("ADVANCE_DAY", "mon"),
        ADVANCE_TIME=os.getenv("ADVANCE_TIME", "00:05"),
        ROTATION_PAIRS=os.getenv("ROTATION_PAIRS", ""),
        ROTATION_START=os.getenv("ROTATION_START", ""),
    )


# Singleton — imported by all other modules as:
#   from dinnerbot.config import settings
settings = _load_settings()

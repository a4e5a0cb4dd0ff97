"""Shared test fixtures and configuration.

Sets up fake environment variables so dinnerbot.config doesn't sys.exit(),
and provides common fixtures like temp DBs and a seeded rotation.
"""

import os

# Patch env vars BEFORE any dinnerbot imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("LLM_API_KEY", "fake-llm-key-for-tests")
os.environ.setdefault("LLM_PROVIDER", "gemini")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("BOT_USERNAME", "dinner_bot")
os.environ.setdefault("TIMEZONE", "America/Toronto")

from datetime import date, timedelta

import pytest

# Consecutive Mondays used throughout the tests
W0 = date(2026, 10, 19)
W1 = W0 + timedelta(weeks=1)
W2 = W0 + timedelta(weeks=2)
W3 = W0 + timedelta(weeks=3)
W4 = W0 + timedelta(weeks=4)
W5 = W0 + timedelta(weeks=5)

PAIR_A = ("<@1>", "<@2>")
PAIR_B = ("<@3>", "<@4>")
PAIR_C = ("<@5>", "<@6>")


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_dinners.db")


@pytest.fixture
def rotation_db(tmp_db_path):
    """Return an empty RotationDB backed by a temp file."""
    from dinnerbot.data.db import RotationDB
    return RotationDB(db_path=tmp_db_path)


@pytest.fixture
def seeded_db(rotation_db):
    """Three pairs due on consecutive Mondays W0, W1, W2."""
    rotation_db.add_assignment(PAIR_A, W0)
    rotation_db.add_assignment(PAIR_B, W1)
    rotation_db.add_assignment(PAIR_C, W2)
    return rotation_db


@pytest.fixture
def user_db(tmp_path):
    """Return a UserDB instance backed by a temp file."""
    from dinnerbot.data.db import UserDB
    return UserDB(db_path=str(tmp_path / "test_users.db"))


@pytest.fixture
def make_engine():
    """Factory for a RotationEngine whose clock is pinned to `today`."""
    from dinnerbot.core.rotation import RotationEngine

    def _make(store, today=W0):
        return RotationEngine(store, clock=lambda: today)

    return _make

"""
Dinner Rota Bot — Rotation Database.

The rotation persists in SQLite across weeks, surviving bot restarts.
Assignments are created once at seed time and afterwards only their due
dates change.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path

from dinnerbot.data.models import Assignment, DirectoryEntry, User
from dinnerbot.ports.rotation_store import StoreError

logger = logging.getLogger(__name__)


class RotationDB:
    """SQLite-backed storage for rotation assignments. Implements RotationStore."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from dinnerbot.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        try:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            self._init_db()
        except (OSError, sqlite3.Error) as exc:
            logger.error("Could not open rotation DB at %s: %s", db_path, exc)
            raise StoreError(f"Rotation store unavailable: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create the assignments table if it doesn't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS assignments (
                    id        INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_a    TEXT NOT NULL,
                    user_b    TEXT NOT NULL,
                    due_date  TEXT NOT NULL UNIQUE
                )
            """)
        logger.debug("Assignments table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_assignment(row: sqlite3.Row) -> Assignment:
        return Assignment(
            id=row["id"],
            users=(row["user_a"], row["user_b"]),
            due_date=date.fromisoformat(row["due_date"]),
        )

    def _fetch(self, query: str, params: tuple = ()) -> list[Assignment]:
        try:
            with self._connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            logger.error("Rotation query failed: %s", exc)
            raise StoreError(f"Rotation store unavailable: {exc}") from exc
        return [self._row_to_assignment(r) for r in rows]

    def add_assignment(self, users: tuple[str, str], due_date: date) -> Assignment:
        """Insert a new pair due on the given Monday."""
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "INSERT INTO assignments (user_a, user_b, due_date) VALUES (?, ?, ?)",
                    (users[0], users[1], due_date.isoformat()),
                )
                assignment_id = cursor.lastrowid
        except sqlite3.Error as exc:
            logger.error("Failed to add assignment %s on %s: %s", users, due_date, exc)
            raise StoreError(f"Could not add assignment: {exc}") from exc

        logger.info("Assignment added: #%d %s & %s on %s", assignment_id, users[0], users[1], due_date)
        return Assignment(id=assignment_id, users=users, due_date=due_date)

    def list_all(self) -> list[Assignment]:
        """Return the full rotation ordered by due date."""
        return self._fetch("SELECT * FROM assignments ORDER BY due_date")

    def count(self) -> int:
        return len(self.list_all())

    def find_by_due_date(self, due_date: date) -> Assignment | None:
        """Fetch the pair due on exactly this date."""
        rows = self._fetch(
            "SELECT * FROM assignments WHERE due_date = ?", (due_date.isoformat(),)
        )
        return rows[0] if rows else None

    def find_by_user(self, user: str) -> Assignment | None:
        """Fetch the earliest assignment the user is part of."""
        rows = self._fetch(
            "SELECT * FROM assignments WHERE user_a = ? OR user_b = ? ORDER BY due_date LIMIT 1",
            (user, user),
        )
        return rows[0] if rows else None

    def set_due_date(self, user: str, new_date: date) -> None:
        """Move the assignment containing user to new_date."""
        current = self.find_by_user(user)
        if current is None:
            raise StoreError(f"No assignment for {user}")

        try:
            with self._connect() as conn:
                conn.execute(
                    "UPDATE assignments SET due_date = ? WHERE id = ?",
                    (new_date.isoformat(), current.id),
                )
        except sqlite3.Error as exc:
            logger.error("Failed to move assignment #%d to %s: %s", current.id, new_date, exc)
            raise StoreError(f"Could not update assignment: {exc}") from exc

        logger.info("Assignment #%d moved %s → %s", current.id, current.due_date, new_date)


class UserDB:
    """SQLite-backed storage for registered bot users."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from dinnerbot.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    telegram_user_id  INTEGER PRIMARY KEY,
                    display_name      TEXT NOT NULL,
                    created_at        TEXT NOT NULL
                )
            """)
        logger.debug("Users table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            telegram_user_id=row["telegram_user_id"],
            display_name=row["display_name"],
            created_at=row["created_at"],
        )

    def add_user(self, telegram_user_id: int, display_name: str) -> User:
        """Register a user, or rename one who is already registered."""
        now = datetime.now().isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO users (telegram_user_id, display_name, created_at)
                VALUES (?, ?, ?)
                ON CONFLICT(telegram_user_id) DO UPDATE SET display_name = excluded.display_name
                """,
                (telegram_user_id, display_name.strip(), now),
            )
        logger.info("User registered: %d '%s'", telegram_user_id, display_name)
        return self.get_user(telegram_user_id)

    def get_user(self, telegram_user_id: int) -> User | None:
        """Fetch a user by Telegram user ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE telegram_user_id = ?",
                (telegram_user_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def list_users(self) -> list[User]:
        """Return all registered users in registration order."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM users ORDER BY created_at, telegram_user_id"
            ).fetchall()
        return [self._row_to_user(r) for r in rows]

    def directory(self) -> list[DirectoryEntry]:
        """Registered users in the shape name resolution expects."""
        return [
            DirectoryEntry(id=str(u.telegram_user_id), display_name=u.display_name)
            for u in self.list_users()
        ]

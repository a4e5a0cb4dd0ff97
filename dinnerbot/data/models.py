"""
Dinner Rota Bot — Data Models.

The rotation lives in SQLite and survives bot restarts. Each row is one
pair of people and the Monday of the week they cook.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass
class Assignment:
    """One rotation slot: a pair of users and the Monday they are due.

    Users are stored in canonical mention form, e.g. "<@12345>".
    """

    id: int
    users: tuple[str, str]
    due_date: date

    def includes(self, user: str) -> bool:
        return user in self.users


@dataclass
class User:
    """A registered bot user. The users table doubles as the name directory."""

    telegram_user_id: int
    display_name: str
    created_at: str = ""


@dataclass
class DirectoryEntry:
    """A user as seen by name resolution."""

    id: str
    display_name: str

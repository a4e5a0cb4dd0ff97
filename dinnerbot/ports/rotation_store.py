"""Rotation store port — abstract interface for persisted assignments.

Core modules depend on this protocol, never on a specific storage engine.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from dinnerbot.data.models import Assignment


class StoreError(Exception):
    """Raised when the underlying persistence is unavailable."""


class RotationStore(Protocol):
    """Abstract rotation storage used by the rotation engine."""

    def list_all(self) -> list[Assignment]: ...

    def find_by_due_date(self, due_date: date) -> Assignment | None: ...

    def find_by_user(self, user: str) -> Assignment | None: ...

    def set_due_date(self, user: str, new_date: date) -> None: ...

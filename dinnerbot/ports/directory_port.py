"""User directory port — abstract interface for looking up known users.

Name resolution depends on this protocol, never on a specific chat backend.
"""

from __future__ import annotations

from typing import Protocol

from dinnerbot.data.models import DirectoryEntry


class DirectoryUnavailable(Exception):
    """Raised when the user directory cannot be reached."""


class UserDirectoryPort(Protocol):
    """Abstract user directory used by NameResolver."""

    async def list_users(self) -> list[DirectoryEntry]: ...

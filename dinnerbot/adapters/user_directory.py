"""Registered-users directory adapter — implements UserDirectoryPort.

Telegram has no API for listing everyone in a group, so the directory is
the set of users who registered with /register.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from typing import TYPE_CHECKING

from dinnerbot.ports.directory_port import DirectoryUnavailable

if TYPE_CHECKING:
    from dinnerbot.data.db import UserDB
    from dinnerbot.data.models import DirectoryEntry

logger = logging.getLogger(__name__)


class RegisteredUserDirectory:
    """UserDB implementation of UserDirectoryPort."""

    def __init__(self, user_db: UserDB) -> None:
        self._user_db = user_db

    async def list_users(self) -> list[DirectoryEntry]:
        try:
            return await asyncio.to_thread(self._user_db.directory)
        except sqlite3.Error as exc:
            logger.error("User directory lookup failed: %s", exc)
            raise DirectoryUnavailable(str(exc)) from exc

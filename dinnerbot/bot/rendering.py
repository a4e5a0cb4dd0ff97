"""Render canonical mentions for Telegram.

Core responses name people as "<@12345>". Telegram shows those as raw
text, so they are turned into HTML user links; everything else is escaped.
"""

from __future__ import annotations

import asyncio
import html
import logging
import re
import sqlite3
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dinnerbot.data.db import UserDB

logger = logging.getLogger(__name__)

_MENTION_RE = re.compile(r"<@(\d+)>")


def render_mentions(text: str, names: dict[str, str]) -> str:
    """Return text as Telegram HTML with <@id> replaced by user links.

    Args:
        text: Plain response text.
        names: Map of user id → display name. Unknown ids show as "someone".
    """
    parts: list[str] = []
    last = 0
    for match in _MENTION_RE.finditer(text):
        parts.append(html.escape(text[last:match.start()], quote=False))
        user_id = match.group(1)
        label = html.escape(names.get(user_id, "someone"), quote=False)
        parts.append(f'<a href="tg://user?id={user_id}">{label}</a>')
        last = match.end()
    parts.append(html.escape(text[last:], quote=False))
    return "".join(parts)


async def load_display_names(user_db: UserDB | None) -> dict[str, str]:
    """Map user id → display name for rendering; empty if the lookup fails."""
    if user_db is None:
        return {}
    try:
        entries = await asyncio.to_thread(user_db.directory)
    except sqlite3.Error as exc:
        logger.warning("Could not load display names, mentions render as 'someone': %s", exc)
        return {}
    return {e.id: e.display_name for e in entries}

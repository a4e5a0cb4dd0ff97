"""Telegram notification adapter — implements NotificationPort.

Wraps a telegram.Bot instance and renders canonical mentions as
Telegram user links before posting.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telegram import Bot
from telegram.constants import ParseMode

from dinnerbot.bot.rendering import load_display_names, render_mentions

if TYPE_CHECKING:
    from dinnerbot.data.db import UserDB

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot, user_db: UserDB | None = None) -> None:
        self._bot = bot
        self._user_db = user_db

    async def send_message(self, chat_id: int, text: str) -> None:
        names = await load_display_names(self._user_db)
        await self._bot.send_message(
            chat_id=chat_id,
            text=render_mentions(text, names),
            parse_mode=ParseMode.HTML,
        )
        logger.debug("Posted to chat %d: %s", chat_id, text[:80])

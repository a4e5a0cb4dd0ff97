"""
Dinner Rota Bot — Weekly Jobs.

Reminder: a weekly push to the dinners chat naming the pair cooking next
week and the pair leading the discussion after them.

Advance: rolls the pair whose week has arrived to the back of the rotation.

This module is transport-agnostic: it depends on the NotificationPort
protocol and the RotationEngine, not on Telegram.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dinnerbot.core.rotation import RotationEngine
    from dinnerbot.data.models import Assignment
    from dinnerbot.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


def build_reminder(upcoming: Assignment, follower: Assignment | None) -> str:
    """Format the weekly reminder text."""
    lines = [
        f"{upcoming.users[0]} and {upcoming.users[1]}, you two are on dinners next week!",
    ]
    if follower is not None:
        lines.append(
            f"{follower.users[0]} and {follower.users[1]}, you guys are doing the discussion!"
        )
    return "\n".join(lines)


async def post_reminder(
    engine: RotationEngine,
    notifier: NotificationPort,
    chat_id: int,
) -> str | None:
    """Send the weekly reminder. Returns the text sent, or None if the rotation is empty."""
    upcoming = await engine.get_next()
    if upcoming is None:
        logger.warning("Reminder skipped: nobody is on the rotation")
        return None

    follower = await engine.get_follower(upcoming.due_date)
    message = build_reminder(upcoming, follower)
    await notifier.send_message(chat_id, message)
    logger.info("Reminder posted to chat %d for week of %s", chat_id, upcoming.due_date)
    return message


async def run_advance(engine: RotationEngine, today: date) -> list[Assignment]:
    """Advance the rotation for the week containing today."""
    moved = await engine.advance(today)
    for assignment in moved:
        logger.info(
            "%s next due %s", " & ".join(assignment.users), assignment.due_date,
        )
    return moved

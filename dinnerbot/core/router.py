"""
Dinner Rota Bot — Intent Router.

Turns one classified request into exactly one reply string. Scheduling
decisions are delegated to the RotationEngine and name lookups to the
NameResolver; every failure they raise is converted into a message here,
so nothing escapes to the chat layer.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Callable

from dinnerbot.core.classifier import ClassificationError, IntentKind, IntentRequest
from dinnerbot.core.dates import format_date, normalize, upcoming_monday
from dinnerbot.core.rotation import ScheduleConflict
from dinnerbot.ports.directory_port import DirectoryUnavailable
from dinnerbot.ports.rotation_store import StoreError

if TYPE_CHECKING:
    from dinnerbot.core.classifier import IntentClassifier
    from dinnerbot.core.names import NameResolver
    from dinnerbot.core.rotation import RotationEngine

logger = logging.getLogger(__name__)

NOT_UNDERSTOOD = "Sorry, I don't understand what you said. Try asking who's on next, or to skip a week."
SWAP_NOT_DONE = "Whoa, swapping functionality isn't done yet!"
NOTHING_SCHEDULED = "Looks like no one is on the dinner schedule yet!"
STORE_FAILURE = "Sorry, I couldn't reach the dinner schedule right now. Please try again later."
DIRECTORY_FAILURE = "Sorry, I couldn't look up who that is right now. Please try again later."


class IntentRouter:
    """Dispatches IntentRequests to the rotation engine."""

    def __init__(
        self,
        engine: RotationEngine,
        resolver: NameResolver,
        classifier: IntentClassifier,
        bot_reference: str = "",
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._engine = engine
        self._resolver = resolver
        self._classifier = classifier
        self._bot_reference = bot_reference.lower()
        self._clock = clock

    async def handle_text(self, text: str, requesting_user: str) -> str:
        """Classify a raw message, then handle it.

        A classifier failure is not an error: it gets the fallback reply.
        """
        try:
            request = await self._classifier.classify(text, requesting_user)
        except ClassificationError as exc:
            logger.info("Classification failed, treating as unknown: %s", exc)
            return NOT_UNDERSTOOD
        return await self.handle(request)

    async def handle(self, request: IntentRequest) -> str:
        try:
            if request.intent is IntentKind.GET:
                return await self._handle_get(request)
            if request.intent is IntentKind.SKIP:
                return await self._handle_skip(request)
            if request.intent is IntentKind.SWAP:
                return SWAP_NOT_DONE
            return NOT_UNDERSTOOD
        except StoreError:
            logger.exception("Rotation store failed while handling %s", request.intent.value)
            return STORE_FAILURE
        except DirectoryUnavailable as exc:
            logger.error("User directory unavailable: %s", exc)
            return DIRECTORY_FAILURE

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    async def _handle_get(self, request: IntentRequest) -> str:
        """Who is on a given week, when is someone on, or who is next."""
        if request.when is not None:
            week = normalize(request.when)
            users = await self._engine.get_users(week)
            if users is None:
                return f"Looks like no one is scheduled to be on {format_date(week)}!"
            return f"{users[0]} and {users[1]} are on {format_date(week)}."

        if len(request.contacts) > 1:
            name = self._first_human_contact(request.contacts)
            if name is not None:
                user = await self._resolver.resolve(name, request.requesting_user)
                due = await self._engine.get_date(user)
                if due is None:
                    return f"Looks like {user} isn't on the dinner schedule."
                return f"{user} is doing dinner next on {format_date(due)}."

        upcoming = await self._engine.get_next()
        if upcoming is None:
            return NOTHING_SCHEDULED
        return f"{upcoming.users[0]} and {upcoming.users[1]} are on next."

    async def _handle_skip(self, request: IntentRequest) -> str:
        """Postpone the upcoming Monday's pair, or the week the user named."""
        if request.when is not None:
            week = normalize(request.when)
        else:
            week = upcoming_monday(self._clock())

        try:
            moved = await self._engine.postpone(week)
        except ScheduleConflict as exc:
            return (
                f"Couldn't skip {format_date(exc.requested)}: "
                f"{format_date(exc.clashing)} already has a dinner scheduled, "
                "so I left the schedule as it was."
            )

        if moved is None:
            return f"Looks like no one is on dinner {format_date(week)}, so there's nothing to skip."
        return f"I've updated the schedule so there's no dinner on {format_date(week)}."

    def _first_human_contact(self, contacts: list[str]) -> str | None:
        """First contact that isn't the bot itself."""
        for contact in contacts:
            if self._bot_reference and self._bot_reference in contact.lower():
                continue
            return contact
        return None

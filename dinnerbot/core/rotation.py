"""
Dinner Rota Bot — Rotation Engine.

Pure rotation arithmetic over a RotationStore: who is on next, who follows
them, postponing a week and rolling pairs that have come due to the back of
the rotation.

The store is synchronous; calls run in a worker thread so the bot's event
loop is never blocked. Mutations are serialized by a single lock so two
postpone/advance requests can never interleave on the same rotation.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Callable

from dinnerbot.core.dates import ONE_WEEK, normalize

if TYPE_CHECKING:
    from dinnerbot.data.models import Assignment
    from dinnerbot.ports.rotation_store import RotationStore

logger = logging.getLogger(__name__)


class ScheduleConflict(Exception):
    """Raised when postponing would land on a week that is already taken."""

    def __init__(self, requested: date, clashing: date) -> None:
        self.requested = requested
        self.clashing = clashing
        super().__init__(
            f"Cannot postpone {requested}: {clashing} is already scheduled"
        )


class RotationEngine:
    """Rotation policy on top of a RotationStore."""

    def __init__(
        self,
        store: RotationStore,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._clock = clock
        self._lock = asyncio.Lock()

    def today(self) -> date:
        return self._clock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def schedule(self) -> list[Assignment]:
        """The whole rotation, ordered by due date."""
        return await asyncio.to_thread(self._store.list_all)

    async def get_next(self) -> Assignment | None:
        """The first pair due this week or later."""
        week_start = normalize(self._clock())
        for assignment in await self.schedule():
            if assignment.due_date >= week_start:
                return assignment
        return None

    async def get_follower(self, after_date: date | datetime | str) -> Assignment | None:
        """The pair due the first week strictly after the week of after_date."""
        after_date = normalize(after_date)
        for assignment in await self.schedule():
            if assignment.due_date > after_date:
                return assignment
        return None

    async def get_users(self, when: date | datetime | str) -> tuple[str, str] | None:
        """The pair on duty the week of `when`."""
        assignment = await asyncio.to_thread(self._store.find_by_due_date, normalize(when))
        return assignment.users if assignment else None

    async def get_date(self, user: str) -> date | None:
        """When `user` is next on duty."""
        assignment = await asyncio.to_thread(self._store.find_by_user, user)
        return assignment.due_date if assignment else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def postpone(self, when: date | datetime | str) -> Assignment | None:
        """Push the pair due the week of `when` back by one week.

        Returns the moved assignment, or None if nobody is due that week.
        Raises ScheduleConflict, leaving the rotation unchanged, if the
        following week already belongs to another pair.
        """
        due = normalize(when)
        async with self._lock:
            assignment = await asyncio.to_thread(self._store.find_by_due_date, due)
            if assignment is None:
                logger.info("Nothing to postpone on %s", due)
                return None

            new_date = due + ONE_WEEK
            clash = await asyncio.to_thread(self._store.find_by_due_date, new_date)
            if clash is not None:
                logger.warning(
                    "Postpone of %s rejected: %s already due on %s",
                    due, " & ".join(clash.users), new_date,
                )
                raise ScheduleConflict(due, new_date)

            await asyncio.to_thread(self._store.set_due_date, assignment.users[0], new_date)
            assignment.due_date = new_date

        logger.info("Postponed %s from %s to %s", " & ".join(assignment.users), due, new_date)
        return assignment

    async def advance(self, today: date | datetime | str) -> list[Assignment]:
        """Roll every pair due on or before this week to the back of the rotation.

        A due pair reappears `number of pairs` weeks after this week. If a
        postponement already occupies that week, the pair takes the first
        free week after it. Running twice in the same week changes nothing:
        moved pairs are no longer due.
        """
        week = normalize(today)
        async with self._lock:
            snapshot = await asyncio.to_thread(self._store.list_all)
            taken = {a.due_date for a in snapshot}
            due = [a for a in snapshot if a.due_date <= week]
            spacing = timedelta(weeks=len(snapshot))

            moved: list[Assignment] = []
            for assignment in due:
                new_date = week + spacing
                while new_date in taken:
                    new_date += ONE_WEEK
                taken.discard(assignment.due_date)
                taken.add(new_date)

                await asyncio.to_thread(self._store.set_due_date, assignment.users[0], new_date)
                logger.info(
                    "Advanced %s from %s to %s",
                    " & ".join(assignment.users), assignment.due_date, new_date,
                )
                assignment.due_date = new_date
                moved.append(assignment)

        if not moved:
            logger.info("Advance for week of %s: nothing due", week)
        return moved

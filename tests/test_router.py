"""Tests for dinnerbot.core.router — IntentRouter.

Uses a real RotationEngine over a temp SQLite store; the classifier and the
user directory are mocked.
"""

from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from dinnerbot.core.classifier import ClassificationError, IntentKind, IntentRequest
from dinnerbot.core.names import NameResolver
from dinnerbot.core.router import (
    DIRECTORY_FAILURE,
    NOT_UNDERSTOOD,
    NOTHING_SCHEDULED,
    STORE_FAILURE,
    SWAP_NOT_DONE,
    IntentRouter,
)
from dinnerbot.data.models import DirectoryEntry
from dinnerbot.ports.directory_port import DirectoryUnavailable
from dinnerbot.ports.rotation_store import StoreError
from tests.conftest import PAIR_A, PAIR_B, PAIR_C, W0, W1, W2, W3

WEDNESDAY = date(2026, 10, 21)
SENDER = "<@5>"


def _request(intent, when=None, contacts=None, sender=SENDER):
    return IntentRequest(
        intent=intent, when=when, contacts=contacts or [], requesting_user=sender,
    )


def _directory(*entries):
    directory = AsyncMock()
    directory.list_users = AsyncMock(return_value=list(entries))
    return directory


@pytest.fixture
def gapped_db(rotation_db):
    """A on W0, B on W1, nobody on W2, C on W3."""
    rotation_db.add_assignment(PAIR_A, W0)
    rotation_db.add_assignment(PAIR_B, W1)
    rotation_db.add_assignment(PAIR_C, W3)
    return rotation_db


@pytest.fixture
def make_router(make_engine):
    def _make(store, directory=None, classifier=None, today=WEDNESDAY):
        directory = directory or _directory(
            DirectoryEntry(id="3", display_name="Dana Scully"),
            DirectoryEntry(id="1", display_name="Fox Mulder"),
        )
        return IntentRouter(
            make_engine(store, today=today),
            NameResolver(directory),
            classifier or AsyncMock(),
            bot_reference="dinner_bot",
            clock=lambda: today,
        )

    return _make


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


class TestGetByDate:
    @pytest.mark.asyncio
    async def test_pair_for_week(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(
            _request(IntentKind.GET, when=date(2026, 10, 28)),
        )
        assert reply == "<@3> and <@4> are on Oct 26th."

    @pytest.mark.asyncio
    async def test_nobody_that_week(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(_request(IntentKind.GET, when=W2))
        assert reply == "Looks like no one is scheduled to be on Nov 2nd!"

    @pytest.mark.asyncio
    async def test_date_wins_over_contacts(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(
            _request(IntentKind.GET, when=W0, contacts=["@dinner_bot", "Dana"]),
        )
        assert reply == "<@1> and <@2> are on Oct 19th."


class TestGetByContact:
    @pytest.mark.asyncio
    async def test_real_name_resolved(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(
            _request(IntentKind.GET, contacts=["@dinner_bot", "dana"]),
        )
        assert reply == "<@3> is doing dinner next on Oct 26th."

    @pytest.mark.asyncio
    async def test_bot_listed_second(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(
            _request(IntentKind.GET, contacts=["Fox", "@Dinner_Bot"]),
        )
        assert reply == "<@1> is doing dinner next on Oct 19th."

    @pytest.mark.asyncio
    async def test_self_reference(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(
            _request(IntentKind.GET, contacts=["@dinner_bot", "I"]),
        )
        assert reply == "<@5> is doing dinner next on Nov 9th."

    @pytest.mark.asyncio
    async def test_mention_form(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(
            _request(IntentKind.GET, contacts=["@dinner_bot", "<@4"]),
        )
        assert reply == "<@4> is doing dinner next on Oct 26th."

    @pytest.mark.asyncio
    async def test_not_on_schedule(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(
            _request(IntentKind.GET, contacts=["@dinner_bot", "walter"]),
        )
        assert reply == "Looks like Walter isn't on the dinner schedule."

    @pytest.mark.asyncio
    async def test_single_contact_means_next(self, gapped_db, make_router):
        directory = _directory()
        reply = await make_router(gapped_db, directory=directory).handle(
            _request(IntentKind.GET, contacts=["Dana"]),
        )
        assert reply == "<@1> and <@2> are on next."
        directory.list_users.assert_not_called()

    @pytest.mark.asyncio
    async def test_only_bot_contacts_means_next(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(
            _request(IntentKind.GET, contacts=["@dinner_bot", "@dinner_bot"]),
        )
        assert reply == "<@1> and <@2> are on next."


class TestGetNext:
    @pytest.mark.asyncio
    async def test_no_entities(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(_request(IntentKind.GET))
        assert reply == "<@1> and <@2> are on next."

    @pytest.mark.asyncio
    async def test_empty_rotation(self, rotation_db, make_router):
        reply = await make_router(rotation_db).handle(_request(IntentKind.GET))
        assert reply == NOTHING_SCHEDULED


# ---------------------------------------------------------------------------
# skip
# ---------------------------------------------------------------------------


class TestSkip:
    @pytest.mark.asyncio
    async def test_wednesday_skips_upcoming_monday(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(_request(IntentKind.SKIP))
        assert reply == "I've updated the schedule so there's no dinner on Oct 26th."
        assert gapped_db.find_by_user("<@3>").due_date == W2

    @pytest.mark.asyncio
    async def test_monday_skips_today(self, gapped_db, make_router):
        router = make_router(gapped_db, today=W1)
        reply = await router.handle(_request(IntentKind.SKIP))
        assert reply == "I've updated the schedule so there's no dinner on Oct 26th."

    @pytest.mark.asyncio
    async def test_explicit_date_normalized(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(
            _request(IntentKind.SKIP, when=date(2026, 11, 12)),
        )
        assert reply == "I've updated the schedule so there's no dinner on Nov 9th."
        assert gapped_db.find_by_user("<@5>").due_date == W3 + timedelta(weeks=1)

    @pytest.mark.asyncio
    async def test_conflict_reported(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(_request(IntentKind.SKIP, when=W0))
        assert reply.startswith("Couldn't skip Oct 19th: Oct 26th already has a dinner")
        assert gapped_db.find_by_user("<@1>").due_date == W0

    @pytest.mark.asyncio
    async def test_nothing_to_skip(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(_request(IntentKind.SKIP, when=W2))
        assert reply == "Looks like no one is on dinner Nov 2nd, so there's nothing to skip."


# ---------------------------------------------------------------------------
# swap / unknown / failures
# ---------------------------------------------------------------------------


class TestFixedResponses:
    @pytest.mark.asyncio
    async def test_swap_not_done(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(
            _request(IntentKind.SWAP, contacts=["Dana", "Fox"]),
        )
        assert reply == SWAP_NOT_DONE

    @pytest.mark.asyncio
    async def test_unknown_intent(self, gapped_db, make_router):
        reply = await make_router(gapped_db).handle(_request(IntentKind.UNKNOWN))
        assert reply == NOT_UNDERSTOOD


class TestHandleText:
    @pytest.mark.asyncio
    async def test_classifies_then_handles(self, gapped_db, make_router):
        classifier = AsyncMock()
        classifier.classify = AsyncMock(return_value=_request(IntentKind.GET))
        router = make_router(gapped_db, classifier=classifier)

        reply = await router.handle_text("@dinner_bot who's next?", SENDER)

        assert reply == "<@1> and <@2> are on next."
        classifier.classify.assert_awaited_once_with("@dinner_bot who's next?", SENDER)

    @pytest.mark.asyncio
    async def test_classification_failure_is_fallback(self, gapped_db, make_router):
        classifier = AsyncMock()
        classifier.classify = AsyncMock(side_effect=ClassificationError("garbage"))
        reply = await make_router(gapped_db, classifier=classifier).handle_text("blah", SENDER)
        assert reply == NOT_UNDERSTOOD


class TestFailureConversion:
    @pytest.mark.asyncio
    async def test_store_error(self):
        engine = MagicMock()
        engine.get_next = AsyncMock(side_effect=StoreError("db down"))
        router = IntentRouter(engine, NameResolver(_directory()), AsyncMock())
        assert await router.handle(_request(IntentKind.GET)) == STORE_FAILURE

    @pytest.mark.asyncio
    async def test_store_error_on_skip(self):
        engine = MagicMock()
        engine.postpone = AsyncMock(side_effect=StoreError("db down"))
        router = IntentRouter(engine, NameResolver(_directory()), AsyncMock(), clock=lambda: WEDNESDAY)
        assert await router.handle(_request(IntentKind.SKIP)) == STORE_FAILURE

    @pytest.mark.asyncio
    async def test_directory_unavailable(self, gapped_db, make_router):
        directory = AsyncMock()
        directory.list_users = AsyncMock(side_effect=DirectoryUnavailable("down"))
        reply = await make_router(gapped_db, directory=directory).handle(
            _request(IntentKind.GET, contacts=["@dinner_bot", "dana"]),
        )
        assert reply == DIRECTORY_FAILURE

"""
Dinner Rota Bot — Intent Classifier.

Turns a chat message into a structured IntentRequest using the configured
LLM provider: one of a closed set of intents plus an optional date and the
people mentioned.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from enum import Enum
from typing import Callable, Protocol

from pydantic import BaseModel, Field, ValidationError, field_validator

from dinnerbot.core.llm import LLMError, classify_json

logger = logging.getLogger(__name__)


class ClassificationError(Exception):
    """Raised when a message cannot be turned into an IntentRequest."""


class IntentKind(str, Enum):
    GET = "get"
    SKIP = "skip"
    SWAP = "swap"
    UNKNOWN = "unknown"


class IntentRequest(BaseModel):
    """Normalized input to the IntentRouter.

    JSON example:
    {
        "intent": "get",
        "when": "2026-10-19",
        "contacts": ["@dinner_bot", "Dana"],
        "requesting_user": "<@12345>"
    }
    """
    intent: IntentKind = IntentKind.UNKNOWN
    when: date | None = None                # datetime entity, time of day dropped
    contacts: list[str] = Field(default_factory=list)
    requesting_user: str

    @field_validator("when", mode="before")
    @classmethod
    def drop_time_of_day(cls, v):
        if isinstance(v, str) and v.strip():
            return datetime.fromisoformat(v.strip()).date()
        if isinstance(v, datetime):
            return v.date()
        return v or None

    @field_validator("contacts", mode="before")
    @classmethod
    def drop_blank_contacts(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        return [c for c in v if isinstance(c, str) and c.strip()]


class IntentClassifier(Protocol):
    """Anything that can classify a message for a given sender."""

    async def classify(self, text: str, requesting_user: str) -> IntentRequest: ...


_SYSTEM_PROMPT = """\
You are the intent classifier for a dinner rotation bot. Pairs of people take
turns cooking a weekly dinner; the pair after them leads the discussion.

Today's date is {today}.

Classify the user's message and return ONE JSON object:
{{"intent": "get" | "skip" | "swap" | "unknown", "datetime": "YYYY-MM-DD" or null, "contacts": ["string", ...]}}

**Intents:**
- "get": asking who is on dinner, when someone is on, or who is next.
- "skip": no dinner some week ("skip next week", "cancel dinner on the 20th").
- "swap": two people want to trade weeks.
- "unknown": anything else.

**Entities:**
- "datetime": the date the user refers to, resolved relative to today. null if none.
- "contacts": every person mentioned, copied exactly as written, in order.
  Include mentions like "@name" or "<@123>", the bot's own mention, and
  first-person words such as "I" or "my" when the user asks about themselves.

Return ONLY the JSON object. No markdown, no explanation.
"""


def _clean_llm_response(raw_text: str) -> str:
    """Remove markdown code block delimiters from LLM's raw response."""
    cleaned = raw_text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned.removeprefix("```json")
    elif cleaned.startswith("```"):
        cleaned = cleaned.removeprefix("```")
    if cleaned.endswith("```"):
        cleaned = cleaned.removesuffix("```")
    return cleaned.strip()


def parse_classification(raw_text: str, requesting_user: str) -> IntentRequest:
    """Build an IntentRequest from the classifier's raw JSON text.

    Raises ClassificationError on anything that isn't a valid object.
    """
    cleaned = _clean_llm_response(raw_text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse LLM response as JSON: %s — raw: '%s'", exc, raw_text)
        raise ClassificationError(f"Not JSON: {cleaned[:80]}") from exc

    if not isinstance(data, dict):
        logger.warning("LLM returned unexpected type: %s", type(data).__name__)
        raise ClassificationError(f"Expected an object, got {type(data).__name__}")

    intent = data.get("intent") or IntentKind.UNKNOWN
    if isinstance(intent, str):
        intent = intent.strip().lower()

    try:
        request = IntentRequest(
            intent=intent,
            when=data.get("datetime"),
            contacts=data.get("contacts"),
            requesting_user=requesting_user,
        )
    except (ValidationError, ValueError, TypeError) as exc:
        logger.warning("LLM returned an invalid classification: %s", exc)
        raise ClassificationError(str(exc)) from exc

    logger.info(
        "Classified as %s (date=%s, contacts=%s)",
        request.intent.value, request.when, request.contacts,
    )
    return request


class LLMIntentClassifier:
    """IntentClassifier backed by the configured LLM provider."""

    def __init__(self, clock: Callable[[], date] = date.today) -> None:
        self._clock = clock

    async def classify(self, text: str, requesting_user: str) -> IntentRequest:
        system_prompt = _SYSTEM_PROMPT.format(today=self._clock().isoformat())
        try:
            raw_text = await classify_json(system_prompt, text)
        except LLMError as exc:
            logger.error("LLM classification call failed: %s", exc)
            raise ClassificationError(str(exc)) from exc

        logger.debug("LLM raw response: %s", raw_text)
        return parse_classification(raw_text, requesting_user)

"""Name resolution — turn what people type into a canonical mention.

"I", "my" and friends mean the sender. "<@123>" is already canonical.
Anything else is looked up by first/last name in the user directory.

The directory match is a best-effort heuristic, not a lookup guarantee:
the first user with any name part equal to the token wins, and an unknown
name is echoed back capitalized instead of failing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dinnerbot.ports.directory_port import UserDirectoryPort

logger = logging.getLogger(__name__)

_SELF_REFERENCES = frozenset({"i", "me", "my", "mine", "myself"})
_MENTION_PREFIX = "<@"
_MENTION_SUFFIX = ">"


def mention(user_id: str | int) -> str:
    """Canonical mention form for a user id."""
    return f"{_MENTION_PREFIX}{user_id}{_MENTION_SUFFIX}"


def is_mention(token: str) -> bool:
    return token.startswith(_MENTION_PREFIX)


class NameResolver:
    """Resolves names against a user directory."""

    def __init__(self, directory: UserDirectoryPort) -> None:
        self._directory = directory

    async def resolve(self, name: str, requesting_user: str) -> str:
        """Return the canonical mention for name.

        Args:
            name: Raw contact token from the classifier.
            requesting_user: Canonical mention of whoever sent the request.

        Raises DirectoryUnavailable if the directory call fails.
        """
        token = name.strip()

        if token.lower() in _SELF_REFERENCES:
            logger.debug("'%s' is a self reference", token)
            return requesting_user

        if is_mention(token):
            # The classifier sometimes drops the closing ">"
            if not token.endswith(_MENTION_SUFFIX):
                token += _MENTION_SUFFIX
            return token

        wanted = token.lower()
        for entry in await self._directory.list_users():
            parts = entry.display_name.lower().split(" ")
            if wanted in parts:
                logger.info("Resolved '%s' to %s (%s)", token, entry.id, entry.display_name)
                return mention(entry.id)

        logger.info("No directory match for '%s', echoing the name", token)
        return token[:1].upper() + token[1:].lower()

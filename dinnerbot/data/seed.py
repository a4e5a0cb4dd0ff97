"""Initial rotation seeding.

Pairs are laid out on consecutive Mondays. The number of assignments is set
once: an already-seeded store is left untouched.
"""

from __future__ import annotations

import logging
from datetime import date

from dinnerbot.core.dates import ONE_WEEK, normalize
from dinnerbot.data.db import RotationDB
from dinnerbot.data.models import Assignment

logger = logging.getLogger(__name__)


def seed_rotation(
    store: RotationDB,
    pairs: list[tuple[str, str]],
    first_monday: date | str,
) -> list[Assignment]:
    """Create one assignment per pair, a week apart, starting first_monday.

    Returns the created assignments (empty if the store was already seeded).
    """
    if not pairs:
        return []

    existing = store.count()
    if existing:
        logger.info("Rotation already seeded with %d pairs, skipping", existing)
        return []

    due = normalize(first_monday)
    created: list[Assignment] = []
    for pair in pairs:
        created.append(store.add_assignment(pair, due))
        due += ONE_WEEK

    logger.info("Seeded rotation with %d pairs starting %s", len(created), normalize(first_monday))
    return created

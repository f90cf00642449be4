"""
Learning session assembly.

Candidates arrive ordered soonest-due first. Due cards are selected and
sized with the scheduling helpers; when nothing is due the session falls
back to never-reviewed cards, then the ones reviewed longest ago, so the
user always has something to study.
"""
from __future__ import annotations

import logging
from datetime import datetime

from flashgen.models.flashcard import Flashcard
from flashgen.services.spaced_repetition import (
    recommended_session_size,
    select_due_cards,
)

logger = logging.getLogger(__name__)


def build_session(cards: list[Flashcard], now: datetime) -> list[Flashcard]:
    due = select_due_cards(cards, now)
    if due:
        return due[: recommended_session_size(len(due))]

    if not cards:
        return []

    logger.info("No due cards among %d candidates, using fallback ordering", len(cards))
    never_reviewed = [c for c in cards if c.last_reviewed_at is None]
    reviewed = sorted(
        (c for c in cards if c.last_reviewed_at is not None),
        key=lambda c: c.last_reviewed_at,  # type: ignore[arg-type, return-value]
    )
    fallback = never_reviewed + reviewed
    return fallback[: recommended_session_size(len(cards))]

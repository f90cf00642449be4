"""
Learning session & spaced repetition router.

Endpoints:
  GET  /learn?deck_id=...   — cards to study now, sized by the session policy
  POST /learn/review        — submit a 1-5 difficulty rating, run SM-2, persist
"""
from __future__ import annotations

import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from flashgen.db.sqlite import (
    get_db,
    get_deck,
    get_flashcard,
    get_learning_candidates,
    update_flashcard_review,
)
from flashgen.deps import get_clock, get_current_user_id
from flashgen.models.learn import LearnCard, LearnSession, ReviewRequest, ReviewResult
from flashgen.services.learning import build_session
from flashgen.services.spaced_repetition import (
    Clock,
    InvalidDifficultyError,
    ReviewState,
    calculate_next_review,
    difficulty_to_text,
    select_due_cards,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=LearnSession)
async def get_session(
    deck_id: str = Query(...),
    user_id: str = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
    db: aiosqlite.Connection = Depends(get_db),
) -> LearnSession:
    deck = await get_deck(db, user_id, deck_id)
    if not deck:
        raise HTTPException(status_code=404, detail="Deck not found")

    now = clock()
    candidates = await get_learning_candidates(db, user_id, deck_id)
    session = build_session(candidates, now)
    return LearnSession(
        deck_id=deck_id,
        due_count=len(select_due_cards(candidates, now)),
        items=[
            LearnCard(
                id=card.id,
                front=card.front,
                back=card.back,
                deck_name=deck.deck_name,
                last_reviewed_at=card.last_reviewed_at,
                next_review_date=card.next_review_date,
                difficulty=card.difficulty,
            )
            for card in session
        ],
    )


@router.post("/review", response_model=ReviewResult)
async def review_card(
    body: ReviewRequest,
    user_id: str = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewResult:
    """Submit a difficulty rating for a flashcard and store its next review state."""
    card = await get_flashcard(db, user_id, body.flashcard_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")

    now = clock()
    state = ReviewState(
        ease_factor=card.ease_factor,
        review_count=card.review_count,
        last_reviewed_at=card.last_reviewed_at,
    )
    try:
        result = calculate_next_review(body.difficulty, state, now)
    except InvalidDifficultyError as e:
        raise HTTPException(status_code=400, detail=str(e))

    updated = await update_flashcard_review(
        db, user_id, card.id, body.difficulty, result, reviewed_at=now
    )
    if not updated:
        # Deleted between read and write
        raise HTTPException(status_code=404, detail="Flashcard not found")

    logger.debug(
        "Card %s rated %d: interval=%d ease=%.2f reviews=%d",
        card.id,
        body.difficulty,
        result.interval,
        result.ease_factor,
        result.review_count,
    )
    return ReviewResult(
        id=card.id,
        difficulty=body.difficulty,
        difficulty_label=difficulty_to_text(body.difficulty),
        ease_factor=result.ease_factor,
        review_count=result.review_count,
        interval=result.interval,
        last_reviewed_at=now,
        next_review_date=result.next_review_date,
    )

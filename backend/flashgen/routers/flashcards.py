"""
Flashcard router.

Endpoints:
  POST   /flashcards          — save approved proposals / manual cards into a named deck
  GET    /flashcards          — list cards (optionally filtered by deck_id)
  GET    /flashcards/{id}     — single card
  PATCH  /flashcards/{id}     — edit front / back
  DELETE /flashcards/{id}     — delete card
"""
from __future__ import annotations

import logging
import sqlite3

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from flashgen.db.sqlite import (
    GenerationNotFoundError,
    create_deck,
    create_flashcards,
    delete_deck,
    delete_flashcard,
    find_deck_by_name,
    get_db,
    get_deck,
    get_flashcard,
    list_flashcards,
    update_flashcard_content,
)
from flashgen.deps import get_current_user_id
from flashgen.models.flashcard import (
    Flashcard,
    FlashcardList,
    FlashcardsCreate,
    FlashcardsCreated,
    FlashcardUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=FlashcardsCreated, status_code=201)
async def create_cards(
    body: FlashcardsCreate,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardsCreated:
    deck_name = body.deck_name.strip()
    if not deck_name:
        raise HTTPException(status_code=400, detail="Deck name is required")

    deck = await find_deck_by_name(db, user_id, deck_name)
    created_deck = False
    if deck is None:
        try:
            deck = await create_deck(db, user_id, deck_name)
            created_deck = True
        except sqlite3.IntegrityError:
            # Created by a concurrent request since the lookup
            deck = await find_deck_by_name(db, user_id, deck_name)
            if deck is None:
                raise HTTPException(409, f'Deck "{deck_name}" already exists')

    try:
        cards = await create_flashcards(db, user_id, deck.id, body.flashcards)
    except GenerationNotFoundError as e:
        if created_deck:
            # Leave no empty deck behind for a rejected batch
            await delete_deck(db, user_id, deck.id)
        raise HTTPException(status_code=404, detail=str(e))

    logger.info("Saved %d flashcards into deck %s", len(cards), deck.id)
    return FlashcardsCreated(deck_id=deck.id, deck_name=deck.deck_name, flashcards=cards)


@router.get("/", response_model=FlashcardList)
async def list_cards(
    deck_id: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardList:
    if deck_id and not await get_deck(db, user_id, deck_id):
        raise HTTPException(status_code=404, detail="Deck not found")
    items, total = await list_flashcards(
        db, user_id, deck_id=deck_id, offset=offset, limit=limit
    )
    return FlashcardList(items=items, total=total)


@router.get("/{card_id}", response_model=Flashcard)
async def get_card(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    card = await get_flashcard(db, user_id, card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return card


@router.patch("/{card_id}", response_model=Flashcard)
async def edit_card(
    card_id: str,
    body: FlashcardUpdate,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    updated = await update_flashcard_content(db, user_id, card_id, body)
    if not updated:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return updated


@router.delete("/{card_id}", status_code=204)
async def remove_card(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> None:
    deleted = await delete_flashcard(db, user_id, card_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Flashcard not found")

import sqlite3

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from flashgen.db.sqlite import (
    create_deck,
    delete_deck,
    get_db,
    get_deck,
    list_decks,
    rename_deck,
)
from flashgen.deps import get_current_user_id
from flashgen.models.deck import Deck, DeckCreate, DeckList, DeckUpdate

router = APIRouter()


@router.post("/", response_model=Deck, status_code=201)
async def create(
    body: DeckCreate,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    try:
        return await create_deck(db, user_id, body.deck_name)
    except sqlite3.IntegrityError:
        raise HTTPException(409, f'Deck "{body.deck_name}" already exists')


@router.get("/", response_model=DeckList)
async def list_all(
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    decks = await list_decks(db, user_id)
    return DeckList(items=decks, total=len(decks))


@router.get("/{deck_id}", response_model=Deck)
async def get_one(
    deck_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    deck = await get_deck(db, user_id, deck_id)
    if not deck:
        raise HTTPException(status_code=404, detail="Deck not found")
    return deck


@router.put("/{deck_id}", response_model=Deck)
async def rename(
    deck_id: str,
    body: DeckUpdate,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    try:
        deck = await rename_deck(db, user_id, deck_id, body.deck_name)
    except sqlite3.IntegrityError:
        raise HTTPException(409, f'Deck "{body.deck_name}" already exists')
    if not deck:
        raise HTTPException(status_code=404, detail="Deck not found")
    return deck


@router.delete("/{deck_id}", status_code=204)
async def remove(
    deck_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> None:
    deleted = await delete_deck(db, user_id, deck_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Deck not found")

"""
Generation router.

Endpoints:
  POST /generations            — generate flashcard proposals from pasted text
  POST /generations/deck-name  — suggest a deck name for pasted text
  GET  /generations            — list past generations
  GET  /generations/errors     — recent generation failures
  GET  /generations/{id}       — single generation
"""
from __future__ import annotations

import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from flashgen.config import settings
from flashgen.db.sqlite import (
    get_db,
    get_generation,
    list_generation_errors,
    list_generations,
)
from flashgen.deps import get_current_user_id
from flashgen.models.generation import (
    DeckNameRequest,
    DeckNameResponse,
    Generation,
    GenerationCreate,
    GenerationErrorLog,
    GenerationList,
    GenerationResult,
)
from flashgen.services.generation import SourceTextError, run_generation
from flashgen.services.llm_service import LLMClient, LLMError, get_llm_client

logger = logging.getLogger(__name__)
router = APIRouter()


def _llm_http_error(e: LLMError) -> HTTPException:
    # Upstream failures are a bad gateway; our own config/parsing problems are 500
    status = 500 if e.code in ("PARSE_ERROR", "CONFIG_ERROR") else 502
    return HTTPException(status_code=status, detail=f"LLM service error: {e}")


@router.post("/", response_model=GenerationResult, status_code=201)
async def create_generation(
    body: GenerationCreate,
    user_id: str = Depends(get_current_user_id),
    llm: LLMClient = Depends(get_llm_client),
    db: aiosqlite.Connection = Depends(get_db),
) -> GenerationResult:
    model = body.model or settings.default_model
    try:
        return await run_generation(db, llm, user_id, model, body.source_text)
    except SourceTextError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LLMError as e:
        raise _llm_http_error(e)


@router.post("/deck-name", response_model=DeckNameResponse)
async def suggest_deck_name(
    body: DeckNameRequest,
    llm: LLMClient = Depends(get_llm_client),
) -> DeckNameResponse:
    model = body.model or settings.deck_name_model
    try:
        name = await llm.generate_deck_name(model, body.source_text)
    except LLMError as e:
        logger.error("Deck name generation failed (%s): %s", e.code, e)
        raise _llm_http_error(e)
    return DeckNameResponse(deck_name=name)


@router.get("/", response_model=GenerationList)
async def list_all(
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> GenerationList:
    items, total = await list_generations(db, user_id, offset=offset, limit=limit)
    return GenerationList(items=items, total=total)


@router.get("/errors", response_model=list[GenerationErrorLog])
async def list_errors(
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> list[GenerationErrorLog]:
    return await list_generation_errors(db, user_id, limit=limit)


@router.get("/{generation_id}", response_model=Generation)
async def get_one(
    generation_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Generation:
    generation = await get_generation(db, user_id, generation_id)
    if not generation:
        raise HTTPException(status_code=404, detail="Generation not found")
    return generation

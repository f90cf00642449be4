"""
Flashcard generation service.

  1. Validates the pasted source text length
  2. Calls the LLM via LLMClient.generate_flashcards()
  3. Records a generations row (hash, length, duration, count)

Proposals are returned for review, not saved as flashcards: the user
approves, edits or rejects them first. LLM failures are recorded in
generation_error_logs and re-raised.
"""
from __future__ import annotations

import hashlib
import logging
import time

import aiosqlite

from flashgen.config import settings
from flashgen.db.sqlite import create_generation, log_generation_error
from flashgen.models.generation import GenerationResult
from flashgen.services.llm_service import LLMClient, LLMError

logger = logging.getLogger(__name__)


class SourceTextError(ValueError):
    """Raised when the source text is outside the accepted length range."""


def hash_source_text(source_text: str) -> str:
    return hashlib.sha256(source_text.encode("utf-8")).hexdigest()


def validate_source_text(source_text: str) -> None:
    length = len(source_text)
    if length < settings.source_text_min_chars:
        raise SourceTextError(
            f"Source text must be at least {settings.source_text_min_chars} characters"
        )
    if length > settings.source_text_max_chars:
        raise SourceTextError(
            f"Source text cannot exceed {settings.source_text_max_chars} characters"
        )


async def run_generation(
    db: aiosqlite.Connection,
    llm: LLMClient,
    user_id: str,
    model: str,
    source_text: str,
) -> GenerationResult:
    validate_source_text(source_text)
    source_hash = hash_source_text(source_text)

    start = time.monotonic()
    try:
        proposals = await llm.generate_flashcards(model, source_text)
    except LLMError as e:
        logger.error("Generation failed for user %s (%s): %s", user_id, e.code, e)
        await log_generation_error(
            db,
            user_id=user_id,
            model=model,
            source_text_hash=source_hash,
            source_text_length=len(source_text),
            error_code=e.code,
            error_message=str(e),
        )
        raise
    duration_ms = int((time.monotonic() - start) * 1000)

    generation = await create_generation(
        db,
        user_id=user_id,
        model=model,
        generated_count=len(proposals),
        source_text_hash=source_hash,
        source_text_length=len(source_text),
        generation_duration=duration_ms,
    )
    logger.info(
        "Generation %s: %d proposals from %s in %d ms",
        generation.id,
        len(proposals),
        model,
        duration_ms,
    )
    return GenerationResult(
        generation_id=generation.id,
        generated_count=len(proposals),
        proposals=proposals,
    )

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

FRONT_MAX_CHARS = 200
BACK_MAX_CHARS = 500
MAX_CARDS_PER_REQUEST = 50


class FlashcardSource(str, Enum):
    MANUAL = "manual"
    AI_FULL = "ai-full"      # accepted exactly as generated
    AI_EDITED = "ai-edited"  # generated, then edited before or after saving


class Flashcard(BaseModel):
    id: str
    deck_id: str
    generation_id: str | None
    front: str
    back: str
    source: FlashcardSource
    ease_factor: float
    review_count: int
    interval: int                       # days; 0 until first review
    difficulty: int | None              # last submitted rating (1-5)
    last_reviewed_at: datetime | None
    next_review_date: datetime | None   # None = due immediately
    created_at: str
    updated_at: str


class FlashcardList(BaseModel):
    items: list[Flashcard]
    total: int


class FlashcardCreateItem(BaseModel):
    front: str = Field(min_length=1, max_length=FRONT_MAX_CHARS)
    back: str = Field(min_length=1, max_length=BACK_MAX_CHARS)
    source: FlashcardSource
    generation_id: str | None = None

    @model_validator(mode="after")
    def _check_generation_reference(self) -> FlashcardCreateItem:
        if self.source is FlashcardSource.MANUAL and self.generation_id is not None:
            raise ValueError("generation_id must be null for manual flashcards")
        if self.source is not FlashcardSource.MANUAL and self.generation_id is None:
            raise ValueError("generation_id is required for AI-generated flashcards")
        return self


class FlashcardsCreate(BaseModel):
    deck_name: str = Field(min_length=1, max_length=100)
    flashcards: list[FlashcardCreateItem] = Field(
        min_length=1, max_length=MAX_CARDS_PER_REQUEST
    )


class FlashcardsCreated(BaseModel):
    deck_id: str
    deck_name: str
    flashcards: list[Flashcard]


class FlashcardUpdate(BaseModel):
    front: str | None = Field(default=None, min_length=1, max_length=FRONT_MAX_CHARS)
    back: str | None = Field(default=None, min_length=1, max_length=BACK_MAX_CHARS)

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class LearnCard(BaseModel):
    id: str
    front: str
    back: str
    deck_name: str
    last_reviewed_at: datetime | None
    next_review_date: datetime | None
    difficulty: int | None


class LearnSession(BaseModel):
    deck_id: str
    due_count: int
    items: list[LearnCard]


class ReviewRequest(BaseModel):
    flashcard_id: str
    # Range is enforced by the scheduler so out-of-range ratings surface as 400
    difficulty: int


class ReviewResult(BaseModel):
    id: str
    difficulty: int
    difficulty_label: str
    ease_factor: float
    review_count: int
    interval: int
    last_reviewed_at: datetime
    next_review_date: datetime

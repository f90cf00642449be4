"""
Spaced repetition scheduling (SM-2 variant) and due-card selection.

Difficulty ratings run 1-5 where 1 = very easy (perfect recall) and
5 = very hard (blackout). SM-2 expects quality 0-5 with 5 = perfect, so
the rating is inverted internally: quality = 6 - difficulty.

Everything here is pure: no I/O, no shared state. Callers load the stored
review state, call calculate_next_review() and persist the result.
"""
from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol, TypeVar

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
FIRST_INTERVAL = 1   # days
SECOND_INTERVAL = 6  # days
PASSING_QUALITY = 3
# Longest span a datetime can represent; replayed intervals are capped here
MAX_INTERVAL = (datetime.max - datetime.min).days

# (upper bound of due count, session size); None = take everything due
_SESSION_STEPS: tuple[tuple[int, int | None], ...] = (
    (10, None),
    (20, 15),
    (50, 20),
)
MAX_SESSION_SIZE = 25

_DIFFICULTY_LABELS = {
    1: "Very easy",
    2: "Easy",
    3: "Medium",
    4: "Hard",
    5: "Very hard",
}

Clock = Callable[[], datetime]


class InvalidDifficultyError(ValueError):
    """Raised when a difficulty rating falls outside 1-5."""

    def __init__(self, difficulty: object) -> None:
        super().__init__(
            f"Difficulty must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}, got {difficulty!r}"
        )
        self.difficulty = difficulty


@dataclass(frozen=True)
class ReviewState:
    """Review state stored on a flashcard. last_reviewed_at is informational only."""
    ease_factor: float = DEFAULT_EASE_FACTOR
    review_count: int = 0
    last_reviewed_at: datetime | None = None


@dataclass(frozen=True)
class NextReviewResult:
    next_review_date: datetime
    ease_factor: float  # rounded to 2 decimals
    review_count: int
    interval: int       # days


class HasNextReviewDate(Protocol):
    next_review_date: datetime | None


CardT = TypeVar("CardT", bound=HasNextReviewDate)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _round_half_up(value: float) -> int:
    # round() is banker's rounding; schedules were computed with half-up
    return math.floor(value + 0.5)


def difficulty_to_quality(difficulty: int) -> int:
    return 6 - difficulty


def difficulty_to_text(difficulty: int) -> str:
    return _DIFFICULTY_LABELS.get(difficulty, "Unknown")


def _validate_difficulty(difficulty: int) -> None:
    if isinstance(difficulty, bool) or not isinstance(difficulty, int):
        raise InvalidDifficultyError(difficulty)
    if difficulty < MIN_DIFFICULTY or difficulty > MAX_DIFFICULTY:
        raise InvalidDifficultyError(difficulty)


def update_ease_factor(ease_factor: float, quality: int) -> float:
    """
    Standard SM-2 ease update, floored at MIN_EASE_FACTOR (no ceiling):
    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    """
    error = 5 - quality
    new_ease = ease_factor + (0.1 - error * (0.08 + error * 0.02))
    return max(MIN_EASE_FACTOR, new_ease)


def reconstruct_interval(review_count: int, ease_factor: float) -> int:
    """
    Rebuild the interval a card would have had after `review_count` reviews.

    Per-review interval history is not stored, so the trajectory is replayed
    from the 6-day second interval using the ease factor passed in (the
    current one). Changing the ease factor therefore also changes the
    reconstructed past. Existing schedules depend on this; keep it.
    Values are capped at MAX_INTERVAL.
    """
    if review_count <= 1:
        return FIRST_INTERVAL
    interval = SECOND_INTERVAL
    for _ in range(3, review_count + 1):
        interval = _round_half_up(min(interval * ease_factor, MAX_INTERVAL))
    return interval


def _days_until_latest(now: datetime) -> int:
    return (datetime.max.replace(tzinfo=now.tzinfo) - now).days


def calculate_next_review(
    difficulty: int,
    state: ReviewState,
    now: datetime | None = None,
) -> NextReviewResult:
    """
    Compute the next review state for a card rated `difficulty` (1-5).

    Args:
        difficulty: 1 = very easy ... 5 = very hard. Rejected, not clamped,
            when out of range.
        state: current ease factor and review count. Trusted as given.
        now: review time; defaults to the current UTC time.

    Returns:
        NextReviewResult with next_review_date = now + interval days. The
        interval is cut to the days left before datetime.max, so very long
        easy streaks end on the last representable date instead of failing.

    Raises:
        InvalidDifficultyError: difficulty is not an integer in 1-5.
    """
    _validate_difficulty(difficulty)
    if now is None:
        now = utc_now()

    new_review_count = state.review_count + 1
    quality = difficulty_to_quality(difficulty)
    new_ease = update_ease_factor(state.ease_factor, quality)

    if quality < PASSING_QUALITY:
        # Poor recall restarts the learning curve
        interval = FIRST_INTERVAL
    elif new_review_count == 1:
        interval = FIRST_INTERVAL
    elif new_review_count == 2:
        interval = SECOND_INTERVAL
    else:
        previous = reconstruct_interval(new_review_count - 1, new_ease)
        interval = _round_half_up(min(previous * new_ease, MAX_INTERVAL))
    interval = min(interval, _days_until_latest(now))

    return NextReviewResult(
        next_review_date=now + timedelta(days=interval),
        ease_factor=_round_half_up(new_ease * 100) / 100,
        review_count=new_review_count,
        interval=interval,
    )


def is_due(next_review_date: datetime | None, now: datetime | None = None) -> bool:
    """Never-scheduled cards are always due; otherwise due once now >= next_review_date."""
    if next_review_date is None:
        return True
    if now is None:
        now = utc_now()
    return now >= next_review_date


def select_due_cards(cards: Iterable[CardT], now: datetime | None = None) -> list[CardT]:
    """Stable filter of `cards` down to the due ones. Input order is preserved."""
    if now is None:
        now = utc_now()
    return [card for card in cards if is_due(card.next_review_date, now)]


def recommended_session_size(total_due: int) -> int:
    """Cap a learning session: small backlogs are taken whole, large ones top out at 25."""
    for upper, size in _SESSION_STEPS:
        if total_due <= upper:
            return total_due if size is None else size
    return MAX_SESSION_SIZE

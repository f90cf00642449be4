import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from flashgen.config import settings
from flashgen.models.dashboard import DashboardStats, Profile, RecentGeneration
from flashgen.models.deck import Deck
from flashgen.models.flashcard import (
    Flashcard,
    FlashcardCreateItem,
    FlashcardSource,
    FlashcardUpdate,
)
from flashgen.models.generation import Generation, GenerationErrorLog
from flashgen.services.spaced_repetition import DEFAULT_EASE_FACTOR, NextReviewResult

_db_path: Path | None = None

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS decks (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    deck_name   TEXT NOT NULL,
    created_at  TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at  TEXT NOT NULL DEFAULT (datetime('now')),
    UNIQUE (user_id, deck_name)
);
CREATE INDEX IF NOT EXISTS idx_decks_user ON decks(user_id);

CREATE TABLE IF NOT EXISTS generations (
    id                      TEXT PRIMARY KEY,
    user_id                 TEXT NOT NULL,
    model                   TEXT NOT NULL,
    generated_count         INTEGER NOT NULL DEFAULT 0,
    accepted_unedited_count INTEGER NOT NULL DEFAULT 0,
    accepted_edited_count   INTEGER NOT NULL DEFAULT 0,
    source_text_hash        TEXT NOT NULL,
    source_text_length      INTEGER NOT NULL,
    generation_duration     INTEGER NOT NULL DEFAULT 0,
    created_at  TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_generations_user ON generations(user_id, created_at);

CREATE TABLE IF NOT EXISTS generation_error_logs (
    id                 TEXT PRIMARY KEY,
    user_id            TEXT NOT NULL,
    model              TEXT NOT NULL,
    source_text_hash   TEXT NOT NULL,
    source_text_length INTEGER NOT NULL,
    error_code         TEXT NOT NULL,
    error_message      TEXT NOT NULL DEFAULT '',
    created_at  TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS flashcards (
    id               TEXT PRIMARY KEY,
    user_id          TEXT NOT NULL,
    deck_id          TEXT NOT NULL REFERENCES decks(id) ON DELETE CASCADE,
    generation_id    TEXT REFERENCES generations(id) ON DELETE SET NULL,
    front            TEXT NOT NULL,
    back             TEXT NOT NULL,
    source           TEXT NOT NULL DEFAULT 'manual',
    ease_factor      REAL NOT NULL DEFAULT 2.5,
    review_count     INTEGER NOT NULL DEFAULT 0,
    interval         INTEGER NOT NULL DEFAULT 0,
    difficulty       INTEGER,
    last_reviewed_at TEXT,
    next_review_date TEXT,
    created_at  TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_flashcards_deck ON flashcards(deck_id);
CREATE INDEX IF NOT EXISTS idx_flashcards_review ON flashcards(deck_id, next_review_date);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO schema_version(version) VALUES (1);
"""


class GenerationNotFoundError(LookupError):
    """Raised when AI-sourced flashcards reference generations that do not exist."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__("Generation not found: " + ",".join(missing))
        self.missing = missing


async def init_sqlite(data_dir: Path) -> None:
    global _db_path
    _db_path = data_dir / settings.sqlite_filename
    async with aiosqlite.connect(_db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()


async def get_db() -> AsyncIterator[aiosqlite.Connection]:
    assert _db_path is not None, "SQLite not initialized"
    async with aiosqlite.connect(_db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys=ON")
        yield db


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _timestamp(value: datetime) -> str:
    # Fixed-width UTC ISO strings sort chronologically as TEXT
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


# --- Decks ---


async def create_deck(db: aiosqlite.Connection, user_id: str, deck_name: str) -> Deck:
    deck_id = str(uuid.uuid4())
    now = _now()
    await db.execute(
        "INSERT INTO decks (id, user_id, deck_name, created_at, updated_at) "
        "VALUES (?, ?, ?, ?, ?)",
        (deck_id, user_id, deck_name, now, now),
    )
    await db.commit()
    return await get_deck(db, user_id, deck_id)  # type: ignore[return-value]


async def get_deck(db: aiosqlite.Connection, user_id: str, deck_id: str) -> Deck | None:
    cursor = await db.execute(
        """SELECT d.*, (SELECT COUNT(*) FROM flashcards f WHERE f.deck_id = d.id) AS flashcard_count
           FROM decks d WHERE d.id = ? AND d.user_id = ?""",
        (deck_id, user_id),
    )
    row = await cursor.fetchone()
    return Deck(**dict(row)) if row else None


async def find_deck_by_name(
    db: aiosqlite.Connection, user_id: str, deck_name: str
) -> Deck | None:
    cursor = await db.execute(
        "SELECT id FROM decks WHERE user_id = ? AND deck_name = ?", (user_id, deck_name)
    )
    row = await cursor.fetchone()
    return await get_deck(db, user_id, row[0]) if row else None


async def list_decks(db: aiosqlite.Connection, user_id: str) -> list[Deck]:
    cursor = await db.execute(
        """SELECT d.*, COUNT(f.id) AS flashcard_count
           FROM decks d
           LEFT JOIN flashcards f ON f.deck_id = d.id
           WHERE d.user_id = ?
           GROUP BY d.id
           ORDER BY d.updated_at DESC, d.deck_name ASC""",
        (user_id,),
    )
    rows = await cursor.fetchall()
    return [Deck(**dict(r)) for r in rows]


async def rename_deck(
    db: aiosqlite.Connection, user_id: str, deck_id: str, deck_name: str
) -> Deck | None:
    cursor = await db.execute(
        "UPDATE decks SET deck_name = ?, updated_at = ? WHERE id = ? AND user_id = ?",
        (deck_name, _now(), deck_id, user_id),
    )
    await db.commit()
    if not cursor.rowcount:
        return None
    return await get_deck(db, user_id, deck_id)


async def delete_deck(db: aiosqlite.Connection, user_id: str, deck_id: str) -> bool:
    # flashcards go with the deck via ON DELETE CASCADE
    cursor = await db.execute(
        "DELETE FROM decks WHERE id = ? AND user_id = ?", (deck_id, user_id)
    )
    await db.commit()
    return (cursor.rowcount or 0) > 0


# --- Generations ---


def _row_to_generation(row: aiosqlite.Row) -> Generation:
    return Generation(**dict(row))


async def create_generation(
    db: aiosqlite.Connection,
    user_id: str,
    model: str,
    generated_count: int,
    source_text_hash: str,
    source_text_length: int,
    generation_duration: int,
) -> Generation:
    generation_id = str(uuid.uuid4())
    now = _now()
    await db.execute(
        """INSERT INTO generations
           (id, user_id, model, generated_count, source_text_hash,
            source_text_length, generation_duration, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            generation_id,
            user_id,
            model,
            generated_count,
            source_text_hash,
            source_text_length,
            generation_duration,
            now,
            now,
        ),
    )
    await db.commit()
    return await get_generation(db, user_id, generation_id)  # type: ignore[return-value]


async def get_generation(
    db: aiosqlite.Connection, user_id: str, generation_id: str
) -> Generation | None:
    cursor = await db.execute(
        "SELECT * FROM generations WHERE id = ? AND user_id = ?", (generation_id, user_id)
    )
    row = await cursor.fetchone()
    return _row_to_generation(row) if row else None


async def list_generations(
    db: aiosqlite.Connection, user_id: str, offset: int = 0, limit: int = 20
) -> tuple[list[Generation], int]:
    cursor = await db.execute(
        "SELECT COUNT(*) FROM generations WHERE user_id = ?", (user_id,)
    )
    total = (await cursor.fetchone())[0]

    cursor = await db.execute(
        "SELECT * FROM generations WHERE user_id = ? "
        "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
        (user_id, limit, offset),
    )
    rows = await cursor.fetchall()
    return [_row_to_generation(r) for r in rows], total


async def log_generation_error(
    db: aiosqlite.Connection,
    user_id: str,
    model: str,
    source_text_hash: str,
    source_text_length: int,
    error_code: str,
    error_message: str,
) -> None:
    await db.execute(
        """INSERT INTO generation_error_logs
           (id, user_id, model, source_text_hash, source_text_length,
            error_code, error_message, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            str(uuid.uuid4()),
            user_id,
            model,
            source_text_hash,
            source_text_length,
            error_code,
            error_message,
            _now(),
        ),
    )
    await db.commit()


async def list_generation_errors(
    db: aiosqlite.Connection, user_id: str, limit: int = 50
) -> list[GenerationErrorLog]:
    cursor = await db.execute(
        "SELECT * FROM generation_error_logs WHERE user_id = ? "
        "ORDER BY created_at DESC, rowid DESC LIMIT ?",
        (user_id, limit),
    )
    rows = await cursor.fetchall()
    return [GenerationErrorLog(**dict(r)) for r in rows]


# --- Flashcards ---


def _row_to_flashcard(row: aiosqlite.Row) -> Flashcard:
    return Flashcard(**dict(row))


async def _missing_generations(
    db: aiosqlite.Connection, user_id: str, generation_ids: list[str]
) -> list[str]:
    placeholders = ", ".join("?" for _ in generation_ids)
    cursor = await db.execute(
        f"SELECT id FROM generations WHERE user_id = ? AND id IN ({placeholders})",  # noqa: S608
        [user_id, *generation_ids],
    )
    found = {row[0] for row in await cursor.fetchall()}
    return [g for g in generation_ids if g not in found]


async def create_flashcards(
    db: aiosqlite.Connection,
    user_id: str,
    deck_id: str,
    items: list[FlashcardCreateItem],
) -> list[Flashcard]:
    """
    Insert a batch of flashcards into a deck.

    AI-sourced items must reference an existing generation of the same user;
    the generation's accepted counters are bumped for each one.
    Raises GenerationNotFoundError before inserting anything otherwise.
    """
    generation_ids = sorted(
        {i.generation_id for i in items if i.generation_id is not None}
    )
    if generation_ids:
        missing = await _missing_generations(db, user_id, generation_ids)
        if missing:
            raise GenerationNotFoundError(missing)

    now = _now()
    card_ids: list[str] = []
    for item in items:
        card_id = str(uuid.uuid4())
        card_ids.append(card_id)
        await db.execute(
            """INSERT INTO flashcards
               (id, user_id, deck_id, generation_id, front, back, source,
                ease_factor, review_count, interval, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, 0, ?, ?)""",
            (
                card_id,
                user_id,
                deck_id,
                item.generation_id,
                item.front,
                item.back,
                item.source.value,
                DEFAULT_EASE_FACTOR,
                now,
                now,
            ),
        )
        if item.source is FlashcardSource.AI_FULL:
            column = "accepted_unedited_count"
        elif item.source is FlashcardSource.AI_EDITED:
            column = "accepted_edited_count"
        else:
            continue
        await db.execute(
            f"UPDATE generations SET {column} = {column} + 1, updated_at = ? WHERE id = ?",  # noqa: S608
            (now, item.generation_id),
        )

    await db.execute("UPDATE decks SET updated_at = ? WHERE id = ?", (now, deck_id))
    await db.commit()

    placeholders = ", ".join("?" for _ in card_ids)
    cursor = await db.execute(
        f"SELECT * FROM flashcards WHERE id IN ({placeholders}) ORDER BY rowid",  # noqa: S608
        card_ids,
    )
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r) for r in rows]


async def get_flashcard(
    db: aiosqlite.Connection, user_id: str, card_id: str
) -> Flashcard | None:
    cursor = await db.execute(
        "SELECT * FROM flashcards WHERE id = ? AND user_id = ?", (card_id, user_id)
    )
    row = await cursor.fetchone()
    return _row_to_flashcard(row) if row else None


async def list_flashcards(
    db: aiosqlite.Connection,
    user_id: str,
    deck_id: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[Flashcard], int]:
    if deck_id:
        cursor = await db.execute(
            "SELECT * FROM flashcards WHERE user_id = ? AND deck_id = ? "
            "ORDER BY created_at ASC, rowid ASC LIMIT ? OFFSET ?",
            (user_id, deck_id, limit, offset),
        )
        count_cursor = await db.execute(
            "SELECT COUNT(*) FROM flashcards WHERE user_id = ? AND deck_id = ?",
            (user_id, deck_id),
        )
    else:
        cursor = await db.execute(
            "SELECT * FROM flashcards WHERE user_id = ? "
            "ORDER BY created_at ASC, rowid ASC LIMIT ? OFFSET ?",
            (user_id, limit, offset),
        )
        count_cursor = await db.execute(
            "SELECT COUNT(*) FROM flashcards WHERE user_id = ?", (user_id,)
        )
    rows = await cursor.fetchall()
    count_row = await count_cursor.fetchone()
    total = count_row[0] if count_row else 0
    return [_row_to_flashcard(r) for r in rows], total


async def get_learning_candidates(
    db: aiosqlite.Connection, user_id: str, deck_id: str
) -> list[Flashcard]:
    """All cards of a deck, never-scheduled first, then soonest-due first."""
    cursor = await db.execute(
        """SELECT * FROM flashcards
           WHERE user_id = ? AND deck_id = ?
           ORDER BY next_review_date IS NOT NULL, next_review_date ASC, created_at ASC, rowid ASC""",
        (user_id, deck_id),
    )
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r) for r in rows]


async def update_flashcard_content(
    db: aiosqlite.Connection,
    user_id: str,
    card_id: str,
    update: FlashcardUpdate,
) -> Flashcard | None:
    card = await get_flashcard(db, user_id, card_id)
    if not card:
        return None
    new_front = update.front if update.front is not None else card.front
    new_back = update.back if update.back is not None else card.back
    source = card.source
    if source is FlashcardSource.AI_FULL and (new_front, new_back) != (card.front, card.back):
        source = FlashcardSource.AI_EDITED
    await db.execute(
        "UPDATE flashcards SET front = ?, back = ?, source = ?, updated_at = ? "
        "WHERE id = ? AND user_id = ?",
        (new_front, new_back, source.value, _now(), card_id, user_id),
    )
    await db.commit()
    return await get_flashcard(db, user_id, card_id)


async def update_flashcard_review(
    db: aiosqlite.Connection,
    user_id: str,
    card_id: str,
    difficulty: int,
    result: NextReviewResult,
    reviewed_at: datetime,
) -> Flashcard | None:
    cursor = await db.execute(
        """UPDATE flashcards
           SET last_reviewed_at = ?, difficulty = ?, next_review_date = ?,
               review_count = ?, ease_factor = ?, interval = ?, updated_at = ?
           WHERE id = ? AND user_id = ?""",
        (
            _timestamp(reviewed_at),
            difficulty,
            _timestamp(result.next_review_date),
            result.review_count,
            result.ease_factor,
            result.interval,
            _now(),
            card_id,
            user_id,
        ),
    )
    await db.commit()
    if not cursor.rowcount:
        return None
    return await get_flashcard(db, user_id, card_id)


async def delete_flashcard(db: aiosqlite.Connection, user_id: str, card_id: str) -> bool:
    cursor = await db.execute(
        "DELETE FROM flashcards WHERE id = ? AND user_id = ?", (card_id, user_id)
    )
    await db.commit()
    return (cursor.rowcount or 0) > 0


# --- Dashboard / profile / account ---


async def _count(db: aiosqlite.Connection, sql: str, params: tuple) -> int:
    cursor = await db.execute(sql, params)
    row = await cursor.fetchone()
    return row[0] if row and row[0] is not None else 0


async def get_dashboard_stats(db: aiosqlite.Connection, user_id: str) -> DashboardStats:
    total = await _count(
        db, "SELECT COUNT(*) FROM flashcards WHERE user_id = ?", (user_id,)
    )
    generated = await _count(
        db,
        "SELECT COUNT(*) FROM flashcards WHERE user_id = ? AND source IN ('ai-full', 'ai-edited')",
        (user_id,),
    )
    edited = await _count(
        db,
        "SELECT COUNT(*) FROM flashcards WHERE user_id = ? AND source = 'ai-edited'",
        (user_id,),
    )
    accepted = await _count(
        db,
        "SELECT SUM(accepted_unedited_count + accepted_edited_count) "
        "FROM generations WHERE user_id = ?",
        (user_id,),
    )

    cursor = await db.execute(
        """SELECT g.id, g.created_at, g.generated_count, g.model,
                  (SELECT d.deck_name FROM flashcards f JOIN decks d ON d.id = f.deck_id
                   WHERE f.generation_id = g.id ORDER BY f.rowid LIMIT 1) AS deck_name,
                  (SELECT f.deck_id FROM flashcards f
                   WHERE f.generation_id = g.id ORDER BY f.rowid LIMIT 1) AS deck_id
           FROM generations g
           WHERE g.user_id = ?
           ORDER BY g.created_at DESC, g.rowid DESC
           LIMIT 3""",
        (user_id,),
    )
    recent = [RecentGeneration(**dict(r)) for r in await cursor.fetchall()]

    return DashboardStats(
        total_flashcards=total,
        generated_flashcards=generated,
        edited_flashcards=edited,
        accepted_flashcards=accepted,
        recent_generations=recent,
    )


async def get_profile(db: aiosqlite.Connection, user_id: str) -> Profile:
    return Profile(
        user_id=user_id,
        total_flashcards=await _count(
            db, "SELECT COUNT(*) FROM flashcards WHERE user_id = ?", (user_id,)
        ),
        total_generations=await _count(
            db, "SELECT COUNT(*) FROM generations WHERE user_id = ?", (user_id,)
        ),
        total_decks=await _count(
            db, "SELECT COUNT(*) FROM decks WHERE user_id = ?", (user_id,)
        ),
    )


async def delete_user_data(db: aiosqlite.Connection, user_id: str) -> dict[str, int]:
    """Remove everything owned by a user. Order respects foreign keys."""
    deleted: dict[str, int] = {}
    for table in ("flashcards", "decks", "generations", "generation_error_logs"):
        cursor = await db.execute(
            f"DELETE FROM {table} WHERE user_id = ?", (user_id,)  # noqa: S608
        )
        deleted[table] = cursor.rowcount or 0
    await db.commit()
    return deleted

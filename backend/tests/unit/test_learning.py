from datetime import datetime, timedelta, timezone

from flashgen.models.flashcard import Flashcard
from flashgen.services.learning import build_session

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _card(n, next_review=None, last_reviewed=None):
    return Flashcard(
        id=f"c{n}",
        deck_id="d1",
        generation_id=None,
        front=f"Q{n}",
        back=f"A{n}",
        source="manual",
        ease_factor=2.5,
        review_count=0 if last_reviewed is None else 1,
        interval=0,
        difficulty=None,
        last_reviewed_at=last_reviewed,
        next_review_date=next_review,
        created_at="2026-02-01 10:00:00",
        updated_at="2026-02-01 10:00:00",
    )


def test_takes_all_due_cards_for_small_backlog():
    cards = [_card(i) for i in range(7)]
    assert [c.id for c in build_session(cards, NOW)] == [f"c{i}" for i in range(7)]


def test_slices_large_backlog_in_input_order():
    cards = [_card(i) for i in range(30)]
    session = build_session(cards, NOW)
    assert len(session) == 20
    assert [c.id for c in session] == [f"c{i}" for i in range(20)]


def test_skips_cards_not_yet_due():
    cards = [
        _card(1, next_review=NOW - timedelta(days=1), last_reviewed=NOW - timedelta(days=7)),
        _card(2, next_review=NOW + timedelta(days=1), last_reviewed=NOW - timedelta(days=5)),
        _card(3),
    ]
    assert [c.id for c in build_session(cards, NOW)] == ["c1", "c3"]


def test_falls_back_to_longest_unreviewed_when_nothing_due():
    cards = [
        _card(1, next_review=NOW + timedelta(days=3), last_reviewed=NOW - timedelta(days=1)),
        _card(2, next_review=NOW + timedelta(days=1), last_reviewed=NOW - timedelta(days=9)),
        _card(3, next_review=NOW + timedelta(days=6), last_reviewed=NOW - timedelta(days=4)),
    ]
    assert [c.id for c in build_session(cards, NOW)] == ["c2", "c3", "c1"]


def test_fallback_is_sized_by_total_cards():
    cards = [
        _card(i, next_review=NOW + timedelta(days=1), last_reviewed=NOW - timedelta(hours=i))
        for i in range(60)
    ]
    session = build_session(cards, NOW)
    assert len(session) == 25
    assert session[0].id == "c59"


def test_empty_deck():
    assert build_session([], NOW) == []

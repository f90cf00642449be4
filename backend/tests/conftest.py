from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from flashgen import app
from flashgen.config import settings
from flashgen.deps import get_clock
from flashgen.models.generation import GenerationProposal
from flashgen.services.llm_service import get_llm_client

T0 = datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Stand-in for the request clock; tests move time explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeLLMClient:
    def __init__(self):
        self.proposals = [
            GenerationProposal(front="What do plants release during photosynthesis?", back="Oxygen"),
            GenerationProposal(front="Which pigment absorbs light?", back="Chlorophyll"),
        ]
        self.deck_name = "Photosynthesis Basics"
        self.error: Exception | None = None
        self.calls: list[tuple[str, str]] = []

    async def generate_flashcards(self, model, source_text):
        self.calls.append((model, source_text))
        if self.error:
            raise self.error
        return list(self.proposals)

    async def generate_deck_name(self, model, source_text):
        self.calls.append((model, source_text))
        if self.error:
            raise self.error
        return self.deck_name


@pytest.fixture
def clock():
    return FrozenClock(T0)


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def client(tmp_path, monkeypatch, fake_llm, clock):
    monkeypatch.setattr(settings, "data_dir", tmp_path / "data")
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def source_text():
    sentence = (
        "Photosynthesis converts light energy into chemical energy stored in glucose. "
        "Chlorophyll in the chloroplasts absorbs mostly red and blue light. "
    )
    return (sentence * 20)[:1500]


@pytest.fixture
def make_deck(client):
    """Create a deck holding manual cards; returns (deck_id, [card ids])."""

    def _make(name="Biology", fronts=("Q1", "Q2", "Q3"), headers=None):
        body = {
            "deck_name": name,
            "flashcards": [
                {"front": f, "back": f"Answer to {f}", "source": "manual", "generation_id": None}
                for f in fronts
            ],
        }
        res = client.post("/flashcards/", json=body, headers=headers or {})
        assert res.status_code == 201, res.text
        data = res.json()
        return data["deck_id"], [c["id"] for c in data["flashcards"]]

    return _make

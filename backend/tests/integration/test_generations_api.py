import hashlib

import pytest

from flashgen.config import settings
from flashgen.services.llm_service import LLMError

pytestmark = pytest.mark.integration


def test_generate_returns_proposals(client, fake_llm, source_text):
    res = client.post("/generations/", json={"source_text": source_text})
    assert res.status_code == 201, res.text
    data = res.json()
    assert data["generated_count"] == 2
    assert [p["source"] for p in data["proposals"]] == ["ai-full", "ai-full"]
    assert fake_llm.calls == [(settings.default_model, source_text)]

    stored = client.get(f"/generations/{data['generation_id']}").json()
    assert stored["model"] == settings.default_model
    assert stored["source_text_length"] == len(source_text)
    assert stored["source_text_hash"] == hashlib.sha256(source_text.encode()).hexdigest()
    assert stored["accepted_unedited_count"] == 0
    assert stored["generation_duration"] >= 0


def test_generate_with_explicit_model(client, fake_llm, source_text):
    client.post("/generations/", json={"source_text": source_text, "model": "other/model"})
    assert fake_llm.calls[0][0] == "other/model"


@pytest.mark.parametrize("length", [999, 10001])
def test_source_text_length_bounds(client, fake_llm, length):
    res = client.post("/generations/", json={"source_text": "x" * length})
    assert res.status_code == 400
    assert fake_llm.calls == []
    assert client.get("/generations/").json()["total"] == 0


def test_upstream_failure_is_logged(client, fake_llm, source_text):
    fake_llm.error = LLMError("API request failed with status 503: overloaded", "API_ERROR")

    res = client.post("/generations/", json={"source_text": source_text})
    assert res.status_code == 502
    assert "overloaded" in res.json()["detail"]
    assert client.get("/generations/").json()["total"] == 0

    errors = client.get("/generations/errors").json()
    assert len(errors) == 1
    assert errors[0]["error_code"] == "API_ERROR"
    assert errors[0]["source_text_length"] == len(source_text)


@pytest.mark.parametrize("code,status", [("TIMEOUT", 502), ("PARSE_ERROR", 500), ("CONFIG_ERROR", 500)])
def test_llm_error_status_mapping(client, fake_llm, source_text, code, status):
    fake_llm.error = LLMError("failed", code)
    res = client.post("/generations/", json={"source_text": source_text})
    assert res.status_code == status
    assert client.get("/generations/errors").json()[0]["error_code"] == code


def test_list_generations_newest_first(client, source_text):
    first = client.post("/generations/", json={"source_text": source_text}).json()
    second = client.post("/generations/", json={"source_text": source_text}).json()

    listing = client.get("/generations/").json()
    assert listing["total"] == 2
    assert [g["id"] for g in listing["items"]] == [
        second["generation_id"],
        first["generation_id"],
    ]
    assert client.get("/generations/", headers={"X-User-Id": "bob"}).json()["total"] == 0


def test_missing_generation(client):
    assert client.get("/generations/does-not-exist").status_code == 404


def test_suggest_deck_name(client, fake_llm, source_text):
    res = client.post("/generations/deck-name", json={"source_text": source_text})
    assert res.status_code == 200
    assert res.json() == {"deck_name": "Photosynthesis Basics"}
    assert fake_llm.calls[0][0] == settings.deck_name_model


def test_suggest_deck_name_failure(client, fake_llm):
    fake_llm.error = LLMError("timed out", "TIMEOUT")
    res = client.post("/generations/deck-name", json={"source_text": "some text"})
    assert res.status_code == 502


def test_suggest_deck_name_requires_text(client):
    assert client.post("/generations/deck-name", json={"source_text": ""}).status_code == 422

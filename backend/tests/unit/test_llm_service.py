import asyncio
import json

import httpx
import pytest

from flashgen.services.llm_service import LLMClient, LLMError, parse_flashcard_blocks


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _client(handler, api_key="test-key"):
    return LLMClient(
        api_key=api_key,
        base_url="https://llm.test/api/v1",
        transport=httpx.MockTransport(handler),
    )


# --- parse_flashcard_blocks ---


def test_parse_blocks():
    raw = (
        "Front: What is the powerhouse of the cell?\n"
        "Back: The mitochondrion\n\n"
        "Front: What does DNA stand for?\n"
        "Back: Deoxyribonucleic acid"
    )
    proposals = parse_flashcard_blocks(raw)
    assert [(p.front, p.back) for p in proposals] == [
        ("What is the powerhouse of the cell?", "The mitochondrion"),
        ("What does DNA stand for?", "Deoxyribonucleic acid"),
    ]
    assert all(p.source == "ai-full" for p in proposals)


def test_parse_drops_incomplete_blocks():
    raw = "Here are your cards:\n\nFront: Only a question\n\nBack: Only an answer\n\nFront: Q\nBack: A"
    proposals = parse_flashcard_blocks(raw)
    assert [(p.front, p.back) for p in proposals] == [("Q", "A")]


def test_parse_handles_windows_newlines_and_padding():
    raw = "  Front: Q1  \r\n  Back: A1\r\n\r\nFront: Q2\r\nBack: A2\r\n"
    assert [(p.front, p.back) for p in parse_flashcard_blocks(raw)] == [("Q1", "A1"), ("Q2", "A2")]


@pytest.mark.parametrize("raw", [None, "", "no flashcards here"])
def test_parse_empty(raw):
    assert parse_flashcard_blocks(raw) == []


# --- LLMClient ---


def test_generate_flashcards_sends_chat_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("Front: Q\nBack: A"))

    proposals = asyncio.run(_client(handler).generate_flashcards("some/model", "source text"))

    assert [(p.front, p.back) for p in proposals] == [("Q", "A")]
    assert seen["url"] == "https://llm.test/api/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "some/model"
    assert seen["body"]["messages"][-1]["content"].endswith("source text")


def test_http_error_status_becomes_api_error():
    def handler(request):
        return httpx.Response(429, text="rate limited")

    with pytest.raises(LLMError) as exc:
        asyncio.run(_client(handler).generate_flashcards("m", "text"))
    assert exc.value.code == "API_ERROR"
    assert "429" in str(exc.value)


def test_timeout_becomes_timeout_error():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(LLMError) as exc:
        asyncio.run(_client(handler).generate_flashcards("m", "text"))
    assert exc.value.code == "TIMEOUT"


def test_malformed_response_becomes_parse_error():
    def handler(request):
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(LLMError) as exc:
        asyncio.run(_client(handler).generate_flashcards("m", "text"))
    assert exc.value.code == "PARSE_ERROR"


def test_missing_api_key_is_config_error():
    def handler(request):
        raise AssertionError("no request should be sent")

    with pytest.raises(LLMError) as exc:
        asyncio.run(_client(handler, api_key="").generate_flashcards("m", "text"))
    assert exc.value.code == "CONFIG_ERROR"


def test_generate_deck_name_cleans_reply():
    def handler(request):
        return httpx.Response(200, json=_completion('"Cell Biology Basics"\nExtra commentary'))

    assert asyncio.run(_client(handler).generate_deck_name("m", "text")) == "Cell Biology Basics"


def test_generate_deck_name_truncates():
    def handler(request):
        return httpx.Response(200, json=_completion("x" * 300))

    assert len(asyncio.run(_client(handler).generate_deck_name("m", "text"))) == 100


def test_generate_deck_name_empty_reply():
    def handler(request):
        return httpx.Response(200, json=_completion("   "))

    with pytest.raises(LLMError) as exc:
        asyncio.run(_client(handler).generate_deck_name("m", "text"))
    assert exc.value.code == "PARSE_ERROR"

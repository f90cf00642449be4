"""
LLM client for flashcard generation.

Talks to an OpenAI-compatible chat completions endpoint (OpenRouter by
default) over httpx. The client is a plain object built from settings and
handed to routes through a FastAPI dependency; there is no module-level
instance.

Usage:
    client = LLMClient(api_key, base_url)
    proposals = await client.generate_flashcards(model, source_text)
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from flashgen.config import settings
from flashgen.models.generation import GenerationProposal

logger = logging.getLogger(__name__)

FLASHCARD_SYSTEM_PROMPT = (
    "You are a helpful assistant that creates flashcards from text. "
    "Generate concise, clear flashcards with questions on the front and answers on the back."
)

FLASHCARD_USER_PROMPT = (
    "Create flashcards from the text below. Respond in the language of the source text. "
    'Write each flashcard as a "Front: question" line followed by a "Back: answer" line, '
    "and separate flashcards with a blank line. No other text should be included.\n\n"
)

DECK_NAME_PROMPT = (
    "Suggest a short, descriptive name (at most 5 words) for a flashcard deck built "
    "from the text below. Respond with the name only, in the language of the text.\n\n"
)

DECK_NAME_MAX_CHARS = 100
_DECK_NAME_SAMPLE_CHARS = 2000


class LLMError(Exception):
    """Raised for any failure talking to or interpreting the LLM. `code` classifies it."""

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


def parse_flashcard_blocks(raw: str | None) -> list[GenerationProposal]:
    """
    Parse "Front: ... / Back: ..." blocks separated by blank lines.

    Blocks missing either side are dropped. Later Front/Back lines in the
    same block override earlier ones.
    """
    if not raw:
        return []

    proposals: list[GenerationProposal] = []
    for block in raw.replace("\r\n", "\n").split("\n\n"):
        front = ""
        back = ""
        for line in block.strip().split("\n"):
            line = line.strip()
            if line.startswith("Front:"):
                front = line[len("Front:"):].strip()
            elif line.startswith("Back:"):
                back = line[len("Back:"):].strip()
        if front and back:
            proposals.append(GenerationProposal(front=front, back=back))
    return proposals


def _clean_deck_name(raw: str) -> str:
    name = raw.strip().splitlines()[0] if raw.strip() else ""
    name = name.strip().strip("\"'`*").strip()
    return name[:DECK_NAME_MAX_CHARS].rstrip()


class LLMClient:
    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _chat(self, model: str, messages: list[dict[str, str]]) -> str:
        """Send one chat completion request and return the first choice's content."""
        if not self.api_key:
            raise LLMError("LLM API key is not configured", "CONFIG_ERROR")

        payload: dict[str, Any] = {"model": model, "messages": messages}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                res = await client.post("/chat/completions", json=payload, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning("LLM request to %s timed out", model)
            raise LLMError(f"LLM request timed out: {e}", "TIMEOUT") from e
        except httpx.HTTPError as e:
            logger.warning("LLM request to %s failed: %s", model, e)
            raise LLMError(f"LLM request failed: {e}", "API_ERROR") from e

        if res.status_code != 200:
            logger.warning(
                "LLM API error for %s: status=%d body=%s", model, res.status_code, res.text[:500]
            )
            raise LLMError(
                f"API request failed with status {res.status_code}: {res.text}", "API_ERROR"
            )

        try:
            content = res.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Unexpected LLM response shape: {e}", "PARSE_ERROR") from e
        if not isinstance(content, str):
            raise LLMError("LLM response had no text content", "PARSE_ERROR")
        logger.debug("Raw LLM content from %s:\n%s", model, content)
        return content

    async def generate_flashcards(self, model: str, source_text: str) -> list[GenerationProposal]:
        content = await self._chat(
            model,
            [
                {"role": "system", "content": FLASHCARD_SYSTEM_PROMPT},
                {"role": "user", "content": FLASHCARD_USER_PROMPT + source_text},
            ],
        )
        return parse_flashcard_blocks(content)

    async def generate_deck_name(self, model: str, source_text: str) -> str:
        content = await self._chat(
            model,
            [{"role": "user", "content": DECK_NAME_PROMPT + source_text[:_DECK_NAME_SAMPLE_CHARS]}],
        )
        name = _clean_deck_name(content)
        if not name:
            raise LLMError("LLM returned an empty deck name", "PARSE_ERROR")
        return name


def get_llm_client() -> LLMClient:
    """FastAPI dependency: a client configured from settings."""
    return LLMClient(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        timeout=settings.llm_timeout_seconds,
    )

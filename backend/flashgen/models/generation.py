from typing import Literal

from pydantic import BaseModel, Field


class GenerationCreate(BaseModel):
    # Length bounds come from settings and are checked by the generation service
    source_text: str
    model: str | None = None


class GenerationProposal(BaseModel):
    front: str
    back: str
    source: Literal["ai-full"] = "ai-full"


class GenerationResult(BaseModel):
    generation_id: str
    generated_count: int
    proposals: list[GenerationProposal]


class Generation(BaseModel):
    id: str
    model: str
    generated_count: int
    accepted_unedited_count: int
    accepted_edited_count: int
    source_text_hash: str
    source_text_length: int
    generation_duration: int  # milliseconds
    created_at: str
    updated_at: str


class GenerationList(BaseModel):
    items: list[Generation]
    total: int


class GenerationErrorLog(BaseModel):
    id: str
    model: str
    source_text_hash: str
    source_text_length: int
    error_code: str
    error_message: str
    created_at: str


class DeckNameRequest(BaseModel):
    source_text: str = Field(min_length=1)
    model: str | None = None


class DeckNameResponse(BaseModel):
    deck_name: str

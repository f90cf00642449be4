from pydantic import BaseModel, Field, field_validator

DECK_NAME_MAX_CHARS = 100


class DeckCreate(BaseModel):
    deck_name: str = Field(min_length=1, max_length=DECK_NAME_MAX_CHARS)

    @field_validator("deck_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Deck name is required")
        return value


class DeckUpdate(DeckCreate):
    pass


class Deck(BaseModel):
    id: str
    deck_name: str
    flashcard_count: int = 0
    created_at: str
    updated_at: str


class DeckList(BaseModel):
    items: list[Deck]
    total: int

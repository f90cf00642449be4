from pydantic import BaseModel


class RecentGeneration(BaseModel):
    id: str
    created_at: str
    generated_count: int
    model: str
    deck_name: str | None
    deck_id: str | None


class DashboardStats(BaseModel):
    total_flashcards: int
    generated_flashcards: int
    edited_flashcards: int
    accepted_flashcards: int
    recent_generations: list[RecentGeneration]


class Profile(BaseModel):
    user_id: str
    total_flashcards: int
    total_generations: int
    total_decks: int

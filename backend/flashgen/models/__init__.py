from flashgen.models.dashboard import DashboardStats, Profile, RecentGeneration
from flashgen.models.deck import Deck, DeckCreate, DeckList, DeckUpdate
from flashgen.models.flashcard import (
    Flashcard,
    FlashcardCreateItem,
    FlashcardList,
    FlashcardsCreate,
    FlashcardsCreated,
    FlashcardSource,
    FlashcardUpdate,
)
from flashgen.models.generation import (
    DeckNameRequest,
    DeckNameResponse,
    Generation,
    GenerationCreate,
    GenerationErrorLog,
    GenerationList,
    GenerationProposal,
    GenerationResult,
)
from flashgen.models.learn import LearnCard, LearnSession, ReviewRequest, ReviewResult

__all__ = [
    "DashboardStats",
    "Deck",
    "DeckCreate",
    "DeckList",
    "DeckNameRequest",
    "DeckNameResponse",
    "DeckUpdate",
    "Flashcard",
    "FlashcardCreateItem",
    "FlashcardList",
    "FlashcardSource",
    "FlashcardUpdate",
    "FlashcardsCreate",
    "FlashcardsCreated",
    "Generation",
    "GenerationCreate",
    "GenerationErrorLog",
    "GenerationList",
    "GenerationProposal",
    "GenerationResult",
    "LearnCard",
    "LearnSession",
    "Profile",
    "RecentGeneration",
    "ReviewRequest",
    "ReviewResult",
]

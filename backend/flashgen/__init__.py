from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flashgen.config import settings
from flashgen.db import init_all_databases


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_all_databases(settings.data_dir)
    yield


def create_app() -> FastAPI:
    application = FastAPI(
        title="Flashcard Generator Backend", version="0.1.0", lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from flashgen.routers import account, decks, flashcards, generations, health, learn

    application.include_router(health.router, tags=["health"])
    application.include_router(account.router, tags=["account"])
    application.include_router(decks.router, prefix="/decks", tags=["decks"])
    application.include_router(
        flashcards.router, prefix="/flashcards", tags=["flashcards"]
    )
    application.include_router(
        generations.router, prefix="/generations", tags=["generations"]
    )
    application.include_router(learn.router, prefix="/learn", tags=["learn"])

    return application


app = create_app()

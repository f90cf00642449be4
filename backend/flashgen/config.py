from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".flashgen" / "data"
    sqlite_filename: str = "flashgen.db"

    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    llm_timeout_seconds: float = 60.0
    default_model: str = "openai/gpt-4o-mini"
    deck_name_model: str = "google/gemini-2.5-flash-preview"

    # Owner for requests without an X-User-Id header (single-user installs)
    default_user_id: str = "local"

    source_text_min_chars: int = 1000
    source_text_max_chars: int = 10000

    log_level: str = "info"

    model_config = {"env_prefix": "FLASHGEN_"}


settings = Settings()

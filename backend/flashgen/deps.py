from fastapi import Header

from flashgen.config import settings
from flashgen.services.spaced_repetition import Clock, utc_now


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Owner of the request. Sessions are handled upstream; they forward X-User-Id."""
    return x_user_id or settings.default_user_id


def get_clock() -> Clock:
    return utc_now

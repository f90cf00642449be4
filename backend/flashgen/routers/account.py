import logging

import aiosqlite
from fastapi import APIRouter, Depends

from flashgen.db.sqlite import delete_user_data, get_dashboard_stats, get_db, get_profile
from flashgen.deps import get_current_user_id
from flashgen.models.dashboard import DashboardStats, Profile

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard(
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    return await get_dashboard_stats(db, user_id)


@router.get("/profile", response_model=Profile)
async def profile(
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    return await get_profile(db, user_id)


@router.delete("/account")
async def delete_account(
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    """Delete every deck, flashcard and generation record the user owns."""
    deleted = await delete_user_data(db, user_id)
    logger.info("Deleted data for user %s: %s", user_id, deleted)
    return {"success": True, "deleted": deleted}

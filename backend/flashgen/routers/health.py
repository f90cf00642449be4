import logging

import aiosqlite
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from flashgen.db.sqlite import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health_check(db: aiosqlite.Connection = Depends(get_db)):
    """Returns 200 when the database answers, 503 otherwise."""
    try:
        cursor = await db.execute("SELECT 1")
        await cursor.fetchone()
    except aiosqlite.Error as e:
        logger.error("Health check failed: %s", e)
        return JSONResponse({"status": "unhealthy", "error": str(e)}, status_code=503)
    return {"status": "healthy"}

from fastapi import APIRouter
from sqlalchemy import text

import logging

from core.config import settings
from core.db import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

@router.get("/health")
async def health_check(db: SessionDep):
    """ Liveness plus a trivial DB round trip. """
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except Exception as e:
        logger.warning("Health check DB probe failed: %s", e)
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "database": database,
        "environment": settings.ENVIRONMENT,
    }

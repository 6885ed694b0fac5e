from fastapi import FastAPI
from contextlib import asynccontextmanager

import logging
from sqlmodel import SQLModel

from core.config import settings
from core.db import engine  # DB engine
from core.personas import list_personas

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """ Root logging configuration from LOG_LEVEL """
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    configure_logging()
    logger.info("Preparing GreenBot backend...")

    # ----- Create DB tables -----
    #   - creates every table registered on SQLModel metadata
    #   - existing tables are left as they are
    #   - create_all is sync, so it runs through run_sync on the event loop
    try:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
    except Exception as e:
        logger.error("Failed to create DB tables: %s", e)
        raise e

    logger.info("Persona registry loaded (%d personas)", len(list_personas()))
    logger.info("GreenBot backend started.")

    yield
    # --- Shutdown ---
    await engine.dispose()
    logger.info("GreenBot backend stopped.")

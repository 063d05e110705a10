import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import get_settings
from app.core.database import AsyncSessionLocal

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health/live")
async def health_live() -> dict:
    return {"status": "ok"}


@router.get("/health/ready")
async def health_ready() -> dict:
    db_ok = False
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            db_ok = True
    except (SQLAlchemyError, OSError):
        logger.exception("Readiness database check failed")

    return {
        "status": "ok" if db_ok else "degraded",
        "db": db_ok,
        "app_env": get_settings().app_env,
    }

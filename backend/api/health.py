"""GET /api/health — system dependency check."""
import logging
from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from core.db_connector import detect_db_type, get_engine
from integrations.ollama_client import OllamaClient

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    ollama_status   = _check_ollama()
    database_status = _check_database()
    overall = "ok" if ollama_status["status"] == "up" and database_status["status"] == "up" else "degraded"
    return {
        "status": overall,
        "services": {
            "ollama":   ollama_status,
            "database": database_status,
        },
    }


def _check_ollama() -> dict:
    ok, detail = OllamaClient().is_healthy()
    if ok:
        return {"status": "up", "model": detail, "url": settings.OLLAMA_HOST}
    return {"status": "down", "error": detail}


def _check_database() -> dict:
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "up", "db_type": detect_db_type(engine, settings.DB_TYPE)}
    except (ValueError, SQLAlchemyError) as e:
        logger.warning("Database health check failed: %s", e)
        return {"status": "down", "error": str(e)}

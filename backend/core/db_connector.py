"""
Database connector: SQLAlchemy engine factory and engine-type detection.
Supports SQLite and MySQL/MariaDB targets.
"""
import logging
from functools import lru_cache
from typing import Iterator, Optional
from sqlalchemy import create_engine, make_url, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import OperationalError

from config import settings

logger = logging.getLogger(__name__)

# SQLAlchemy dialect name → catalog family
_DIALECT_FAMILIES = {
    "sqlite": "sqlite",
    "mysql": "mysql",
    "mariadb": "mysql",
}


def create_engine_from_url(url: str) -> Engine:
    """Build and test a SQLAlchemy engine for the given URL."""
    engine = create_engine(url, pool_pre_ping=True)
    # Validate the connection immediately
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except OperationalError as e:
        engine.dispose()
        raise ValueError(f"Could not connect to database: {e}") from e
    return engine


def detect_db_type(engine: Engine, override: Optional[str] = None) -> str:
    """Return the catalog family ("sqlite" / "mysql") for an engine."""
    if override:
        return override.lower()
    dialect = engine.dialect.name
    return _DIALECT_FAMILIES.get(dialect, dialect)


def engine_identity(engine: Engine) -> str:
    """Stable, password-free identity of the database behind an engine."""
    return engine.url.render_as_string(hide_password=True)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Process-wide engine for the configured DATABASE_URL."""
    logger.info("Connecting to %s", make_url(settings.DATABASE_URL).render_as_string(hide_password=True))
    return create_engine_from_url(settings.DATABASE_URL)


def get_connection() -> Iterator[Connection]:
    """FastAPI dependency: one connection per request, returned to the pool afterwards."""
    with get_engine().connect() as conn:
        yield conn

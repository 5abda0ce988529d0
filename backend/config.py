"""Application settings loaded from .env file."""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Target database
    DATABASE_URL: str = "sqlite:///./demo.db"
    DB_TYPE: Optional[str] = None            # "sqlite" | "mysql"; derived from the URL when unset
    QUERY_TABLES: str = "books"             # empty: every non-internal table
    MIGRATIONS_TABLE_PREFIX: str = "alembic"

    # Ollama
    OLLAMA_HOST: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "qwen2.5-coder:3b"
    OLLAMA_TIMEOUT_SECONDS: int = 120
    OLLAMA_MAX_RETRIES: int = 1

    # Sampling
    LLM_TEMPERATURE: float = 1.0
    LLM_TOP_P: float = 0.95
    LLM_TOP_K: int = 40
    LLM_MAX_OUTPUT_TOKENS: int = 8192

    # Schema snapshot cache
    SCHEMA_CACHE_ENABLED: bool = True

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def query_table_list(self) -> list[str]:
        return [t.strip() for t in self.QUERY_TABLES.split(",") if t.strip()]


settings = Settings()

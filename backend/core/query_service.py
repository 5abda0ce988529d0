"""
Query service: natural-language questions → SQL → rows.

init() inspects the domain tables, grounds a chat session on the formatted
schema and returns it as a QuerySession. query() sends one turn on that
session and executes the SQL the model returns. The SQL is executed verbatim;
the grounding instruction is the only constraint on what it does.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional
from pydantic import ValidationError
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from core.db_connector import engine_identity
from core.exceptions import (
    EmptyResponseError,
    EmptySchemaError,
    ExecutionError,
    InternalModelError,
    NotInitializedError,
    UserFacingModelError,
)
from core.schema_cache import SchemaCache, schema_cache_key
from core.schema_formatter import to_text
from core.schema_inspector import inspect_schema
from integrations.ollama_client import ChatSession, OllamaClient
from models.query import GenerationConfig, ModelReply
from prompts.query_prompts import RESPONSE_SCHEMA, grounding_prompt

logger = logging.getLogger(__name__)


def default_generation_config() -> GenerationConfig:
    return GenerationConfig(
        temperature=settings.LLM_TEMPERATURE,
        top_p=settings.LLM_TOP_P,
        top_k=settings.LLM_TOP_K,
        max_output_tokens=settings.LLM_MAX_OUTPUT_TOKENS,
    )


def parse_reply(raw: str) -> ModelReply:
    """Parse the model's JSON reply; anything off-contract is an empty response."""
    try:
        return ModelReply.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        logger.error("Model reply does not match the response schema: %s", e)
        raise EmptyResponseError("Model reply is not valid JSON for the response schema", raw=raw) from e


@dataclass
class QuerySession:
    """An open, grounded conversation. Not safe to share between concurrent callers."""
    chat: ChatSession
    db_type: str
    schema_text: str


class QueryService:
    def __init__(
        self,
        conn: Connection,
        db_type: str,
        llm: Optional[OllamaClient] = None,
        tables: Optional[list[str]] = None,
        schema_cache: Optional[SchemaCache] = None,
        generation_config: Optional[GenerationConfig] = None,
    ):
        self.conn = conn
        self.db_type = db_type
        self.llm = llm or OllamaClient()
        self.tables = settings.query_table_list if tables is None else tables
        self.schema_cache = schema_cache
        self.generation_config = generation_config or default_generation_config()
        self.session: Optional[QuerySession] = None

    # ── Initialization ────────────────────────────────────────────────────────

    def _build_schema_text(self) -> str:
        schema = inspect_schema(self.conn, self.db_type, include=self.tables or None)
        if not schema:
            raise EmptySchemaError(self.tables)
        return to_text(schema)

    def load_schema_text(self) -> str:
        if self.schema_cache is None:
            return self._build_schema_text()
        key = schema_cache_key(self.db_type, engine_identity(self.conn.engine), self.tables)
        return self.schema_cache.get_or_build(key, self._build_schema_text)

    def init(self) -> QuerySession:
        schema_text = self.load_schema_text()
        instruction = grounding_prompt.format(db_type=self.db_type, schema=schema_text)
        chat = self.llm.start_chat(
            system_instruction=instruction,
            generation_config=self.generation_config,
            response_schema=RESPONSE_SCHEMA,
        )
        self.session = QuerySession(chat=chat, db_type=self.db_type, schema_text=schema_text)
        logger.info("Query session ready (%s, tables: %s)", self.db_type, ", ".join(self.tables) or "*")
        return self.session

    # ── Querying ──────────────────────────────────────────────────────────────

    def query(self, prompt: str, session: Optional[QuerySession] = None) -> list[dict[str, Any]]:
        """
        Send `prompt` as the next turn and execute the returned SQL.
        Uses `session` if given, otherwise the session from the last init().
        """
        session = session or self.session
        if session is None:
            raise NotInitializedError()

        raw = session.chat.send_message(prompt)
        reply = parse_reply(raw)

        if reply.error is not None:
            if reply.error.show_user:
                raise UserFacingModelError(reply.error.message)
            logger.error("Model returned an internal error: %s", reply.error.message)
            raise InternalModelError(reply.error.message or "Model returned an error without a message")

        if not reply.query:
            raise EmptyResponseError(raw=raw)

        return self.execute(reply.query)

    def execute(self, statement: str) -> list[dict[str, Any]]:
        """
        Run `statement` verbatim and return its rows as dicts.
        Statements that return no rows (writes, DDL) are committed.
        """
        logger.info("Executing generated SQL: %s", statement)
        try:
            # no_parameters: percent signs reach the driver untouched
            result = self.conn.exec_driver_sql(statement, execution_options={"no_parameters": True})
            if not result.returns_rows:
                self.conn.commit()
                return []
            return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            logger.warning("Generated SQL failed: %s", e)
            self.conn.rollback()
            raise ExecutionError(statement, e) from e

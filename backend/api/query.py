"""POST /api/query — answer a natural-language question with rows from the database."""
import base64
import logging
from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from sqlalchemy.engine import Connection

from api.errors import GENERIC_ERROR_MESSAGE, error_response, inspection_failed
from config import settings
from core.db_connector import detect_db_type, get_connection
from core.exceptions import (
    EmptySchemaError,
    InspectionError,
    LLMProviderError,
    Text2SQLError,
    UserFacingModelError,
)
from core.query_service import QueryService
from core.schema_cache import schema_cache
from models.query import ErrorResponse, QueryRequest, QueryResponse

router = APIRouter()
logger = logging.getLogger(__name__)

# BLOB cells are returned base64-encoded
ROW_ENCODERS = {
    bytes: lambda b: base64.b64encode(b).decode("ascii"),
    bytearray: lambda b: base64.b64encode(bytes(b)).decode("ascii"),
    memoryview: lambda b: base64.b64encode(b.tobytes()).decode("ascii"),
}


def build_query_service(conn: Connection) -> QueryService:
    return QueryService(
        conn,
        detect_db_type(conn.engine, settings.DB_TYPE),
        schema_cache=schema_cache if settings.SCHEMA_CACHE_ENABLED else None,
    )


def encode_rows(rows: list[dict]) -> list[dict]:
    """Make raw driver values (bytes, Decimal, datetime, ...) JSON-safe."""
    return jsonable_encoder(rows, custom_encoder=ROW_ENCODERS)


@router.post(
    "/query",
    response_model=QueryResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def run_query(req: QueryRequest, conn: Connection = Depends(get_connection)):
    """
    1. Inspect the domain tables and open a grounded session
    2. Ask the model for SQL
    3. Execute it and return the raw rows
    """
    try:
        service = build_query_service(conn)
        session = service.init()
        rows = service.query(req.q, session)
    except UserFacingModelError as e:
        return error_response(400, e.message or GENERIC_ERROR_MESSAGE)
    except InspectionError as e:
        logger.error("Schema inspection failed: %s", e.message)
        return inspection_failed(e)
    except EmptySchemaError as e:
        logger.error("Schema inspection found nothing: %s", e.message)
        return error_response(503, "No queryable tables were found in the database.")
    except LLMProviderError as e:
        logger.error("LLM provider failure: %s", e.message)
        return error_response(502, GENERIC_ERROR_MESSAGE)
    except Text2SQLError as e:
        logger.error("Query failed (%s): %s", type(e).__name__, e.message)
        return error_response(500, GENERIC_ERROR_MESSAGE)
    return QueryResponse(rows=encode_rows(rows))

"""GET /api/schema, DELETE /api/schema/cache — schema snapshot used to ground the model."""
import logging
from typing import Literal
from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse
from sqlalchemy.engine import Connection

from api.errors import error_response, inspection_failed
from config import settings
from core.db_connector import detect_db_type, get_connection
from core.exceptions import InspectionError, UnsupportedEngineError
from core.schema_cache import schema_cache
from core.schema_formatter import to_json, to_text
from core.schema_inspector import inspect_schema

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/schema")
def get_schema(
    format: Literal["text", "json"] = "text",
    pretty: bool = True,
    conn: Connection = Depends(get_connection),
):
    """Inspect the configured query tables and render them as prompt text or JSON."""
    db_type = detect_db_type(conn.engine, settings.DB_TYPE)
    try:
        schema = inspect_schema(conn, db_type, include=settings.query_table_list or None)
    except UnsupportedEngineError as e:
        logger.error("%s", e.message)
        return error_response(500, e.message)
    except InspectionError as e:
        logger.error("Schema inspection failed: %s", e.message)
        return inspection_failed(e)

    if format == "json":
        return Response(content=to_json(schema, pretty=pretty), media_type="application/json")
    return PlainTextResponse(to_text(schema))


@router.delete("/schema/cache")
def clear_schema_cache():
    cleared = schema_cache.clear()
    return {"message": f"Schema cache cleared ({cleared} entries).", "cleared": cleared}

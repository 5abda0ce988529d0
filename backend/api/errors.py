"""Error payloads shared by the routers: {"error": {"message": ...}}."""
from fastapi.responses import JSONResponse

from core.exceptions import InspectionError

GENERIC_ERROR_MESSAGE = "Something went wrong while answering your question. Please try again."


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"message": message}})


def inspection_failed(e: InspectionError) -> JSONResponse:
    """503 naming the table that failed, or the listing step; never the driver message."""
    if e.table is None:
        return error_response(503, "The database schema could not be read (listing tables).")
    return error_response(503, f"The database schema could not be read (table '{e.table}').")

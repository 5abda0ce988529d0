"""
Exception hierarchy for schema inspection and natural-language querying.
Only UserFacingModelError carries a message that is safe to show end users.
"""
from typing import Any, Optional


class Text2SQLError(Exception):
    """Base exception for all inspection and query errors."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class UnsupportedEngineError(Text2SQLError):
    """No catalog strategy exists for the configured database engine."""

    def __init__(self, db_type: str, supported: list[str]):
        super().__init__(
            f"Unsupported database engine for inspection: '{db_type}'. "
            f"Supported engines: {', '.join(supported)}",
            {"db_type": db_type, "supported": supported},
        )
        self.db_type = db_type


class InspectionError(Text2SQLError):
    """A catalog query failed; the whole inspection is aborted.

    `table` is None when the failure happened while listing tables.
    """

    def __init__(self, table: Optional[str], cause: BaseException):
        if table is None:
            message = f"Failed to list tables: {cause}"
        else:
            message = f"Failed to inspect table '{table}': {cause}"
        super().__init__(message, {"table": table})
        self.table = table
        self.cause = cause


class EmptySchemaError(Text2SQLError):
    """Inspection produced no tables to ground the model on."""

    def __init__(self, tables: Optional[list[str]] = None):
        wanted = tables or []
        if wanted:
            message = f"No schema information was generated for tables: {', '.join(wanted)}"
        else:
            message = "No schema information was generated."
        super().__init__(message, {"tables": wanted})


class NotInitializedError(Text2SQLError):
    def __init__(self):
        super().__init__("Query session not initialized. Call init() first.")


class UserFacingModelError(Text2SQLError):
    """The model declined or answered in prose; the message may be shown to the user."""


class InternalModelError(Text2SQLError):
    """The model reported an error that must not be shown to the user."""


class EmptyResponseError(Text2SQLError):
    """The model reply carried neither a query nor a usable error."""

    def __init__(self, message: str = "Query is empty", raw: Optional[str] = None):
        super().__init__(message, {"raw": raw} if raw is not None else None)


class ExecutionError(Text2SQLError):
    """The database rejected the generated statement."""

    def __init__(self, statement: str, cause: BaseException):
        native = getattr(cause, "orig", None) or cause
        super().__init__(f"SQL execution failed: {native}", {"statement": statement})
        self.statement = statement
        self.cause = cause


class LLMProviderError(Text2SQLError):
    """The LLM provider could not be reached or returned an invalid response."""

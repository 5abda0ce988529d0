"""Pydantic schemas for the query API and the model reply contract."""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    q: str = Field(..., min_length=1, description="Natural-language question about the data")


class QueryResponse(BaseModel):
    rows: list[dict[str, Any]] = []


class ErrorDetail(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail


class ModelReplyError(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    show_user: bool = Field(False, alias="showUser")
    message: str = ""


class ModelReply(BaseModel):
    """One structured reply from the model: either a query or an error."""
    query: Optional[str] = None
    error: Optional[ModelReplyError] = None


class GenerationConfig(BaseModel):
    """Sampling configuration for a chat session."""
    temperature: float = 1.0
    top_p: float = 0.95
    top_k: int = 40
    max_output_tokens: int = 8192

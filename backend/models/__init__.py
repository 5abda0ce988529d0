from models.schema import ColumnInfo, ForeignKeyInfo, TableSchema, DatabaseSchema  # noqa: F401
from models.query import QueryRequest, QueryResponse, ErrorResponse, ModelReply, GenerationConfig  # noqa: F401

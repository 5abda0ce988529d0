from core.schema_inspector import inspect_schema, get_catalog  # noqa: F401
from core.schema_formatter import to_text, to_json  # noqa: F401
from core.schema_cache import SchemaCache, schema_cache  # noqa: F401

"""
Schema formatter: renders a DatabaseSchema as prompt text or JSON.
The text form is embedded verbatim in the model's grounding instruction,
so its output must depend only on the schema contents.
"""
import json

from models.schema import DatabaseSchema

EMPTY_SCHEMA_TEXT = "Database schema is empty or no tables were found."


def _bool(value: bool) -> str:
    return "true" if value else "false"


def to_text(schema: DatabaseSchema) -> str:
    """Tables in name order; columns in ordinal order; then PK and FK sections."""
    if not schema:
        return EMPTY_SCHEMA_TEXT

    lines: list[str] = []
    for index, table_name in enumerate(sorted(schema)):
        table = schema[table_name]
        if index > 0:
            lines.append("")

        lines.append(f"Table: {table_name}")

        lines.append("  Columns:")
        if table.columns:
            for column_name, column in table.columns.items():
                details = f"(nullable: {_bool(column.nullable)})"
                if column.default_value is not None:
                    details += f" (default: {column.default_value})"
                lines.append(f"    {column_name}: {column.type} {details}")
        else:
            lines.append("    (No columns found)")

        pk = f"({', '.join(table.primary_key)})" if table.primary_key else "(None)"
        lines.append(f"  Primary Key: {pk}")

        lines.append("  Foreign Keys:")
        if table.foreign_keys:
            for fk in table.foreign_keys:
                lines.append(f"    {fk.column} -> {fk.references}({fk.on_column})")
        else:
            lines.append("    (None)")

    return "\n".join(lines)


def to_json(schema: DatabaseSchema, pretty: bool = True) -> str:
    data = {name: table.model_dump(by_alias=True) for name, table in schema.items()}
    if pretty:
        return json.dumps(data, indent=2)
    return json.dumps(data, separators=(",", ":"))

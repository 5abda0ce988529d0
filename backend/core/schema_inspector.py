"""
Schema inspector: reads a live database catalog into the engine-neutral schema model.

Each supported engine is a Catalog strategy exposing the same four lookups
(list_tables, table_columns, table_primary_key, table_foreign_keys).
inspect_schema() drives a strategy, filters tables and normalizes the result.
Any per-table failure aborts the whole inspection.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional
from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from core.exceptions import InspectionError, UnsupportedEngineError
from models.schema import ColumnInfo, DatabaseSchema, ForeignKeyInfo, TableSchema

logger = logging.getLogger(__name__)

CANONICAL_TIMESTAMP = "CURRENT_TIMESTAMP"


@dataclass
class CatalogColumn:
    name: str
    type: str
    nullable: bool
    default: Any
    ordinal: int


@dataclass
class CatalogForeignKey:
    column: str
    ref_table: str
    ref_column: str


def _as_text(value: Any) -> str:
    """Catalog cells can come back as bytes depending on the driver."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def normalize_default_value(value: Any) -> Optional[str]:
    """
    Normalize a column default reported by the catalog.
    Returns None when the column has no default.
    """
    if value is None:
        return None
    value_str = _as_text(value)
    upper = value_str.upper()

    if upper == "NULL":
        return None
    # CURRENT_TIMESTAMP, CURRENT_TIMESTAMP(3), current_timestamp() ...
    if CANONICAL_TIMESTAMP in upper:
        return CANONICAL_TIMESTAMP
    if len(value_str) >= 2 and value_str[0] == value_str[-1] and value_str[0] in ("'", '"'):
        return value_str[1:-1]
    # MySQL bit/binary literal: b'1'
    if len(value_str) >= 3 and value_str.startswith("b'") and value_str.endswith("'"):
        return value_str[2:-1]
    return value_str


# ── Catalog strategies ────────────────────────────────────────────────────────

class Catalog:
    """Metadata lookups for one engine, bound to an open connection."""

    name = ""

    def __init__(self, conn: Connection):
        self.conn = conn

    def list_tables(self) -> list[str]:
        raise NotImplementedError

    def table_columns(self, table: str) -> list[CatalogColumn]:
        raise NotImplementedError

    def table_primary_key(self, table: str) -> list[str]:
        raise NotImplementedError

    def table_foreign_keys(self, table: str) -> list[CatalogForeignKey]:
        raise NotImplementedError


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SqliteCatalog(Catalog):
    """SQLite: sqlite_master plus the table_info / foreign_key_list pragmas."""

    name = "sqlite"

    def list_tables(self) -> list[str]:
        rows = self.conn.execute(text(
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )).all()
        return [r[0] for r in rows]

    def _table_info(self, table: str) -> list[dict]:
        rows = self.conn.execute(text(f"PRAGMA table_info({_quote_identifier(table)})")).mappings().all()
        return sorted((dict(r) for r in rows), key=lambda r: r["cid"])

    def table_columns(self, table: str) -> list[CatalogColumn]:
        return [
            CatalogColumn(
                name=r["name"],
                type=r["type"] or "",
                nullable=not r["notnull"],
                default=r["dflt_value"],
                ordinal=r["cid"],
            )
            for r in self._table_info(table)
        ]

    def table_primary_key(self, table: str) -> list[str]:
        # pk is the 1-based position inside the key, 0 for non-key columns
        members = [r for r in self._table_info(table) if r["pk"]]
        return [r["name"] for r in sorted(members, key=lambda r: r["pk"])]

    def table_foreign_keys(self, table: str) -> list[CatalogForeignKey]:
        rows = self.conn.execute(
            text(f"PRAGMA foreign_key_list({_quote_identifier(table)})")
        ).mappings().all()
        return [
            CatalogForeignKey(column=r["from"], ref_table=r["table"], ref_column=r["to"])
            for r in rows
        ]


class MysqlCatalog(Catalog):
    """MySQL / MariaDB: information_schema views scoped to DATABASE()."""

    name = "mysql"

    def list_tables(self) -> list[str]:
        # information_schema first; SHOW TABLES when the view is not readable
        try:
            return self._tables_from_information_schema()
        except SQLAlchemyError as e:
            logger.warning(
                "Could not query information_schema (%s), falling back to SHOW TABLES.", e
            )
        return self._tables_from_show_tables()

    def _tables_from_information_schema(self) -> list[str]:
        rows = self.conn.execute(text(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = DATABASE() AND table_type = 'BASE TABLE' "
            "ORDER BY table_name"
        )).all()
        return [_as_text(r[0]) for r in rows]

    def _tables_from_show_tables(self) -> list[str]:
        rows = self.conn.execute(text("SHOW TABLES")).all()
        if not rows:
            logger.warning("SHOW TABLES returned no results.")
        return sorted(_as_text(r[0]) for r in rows)

    def table_columns(self, table: str) -> list[CatalogColumn]:
        rows = self.conn.execute(
            text(
                "SELECT COLUMN_NAME AS column_name, COLUMN_TYPE AS column_type, "
                "IS_NULLABLE AS is_nullable, COLUMN_DEFAULT AS column_default, "
                "ORDINAL_POSITION AS ordinal_position "
                "FROM information_schema.COLUMNS "
                "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table "
                "ORDER BY ORDINAL_POSITION"
            ),
            {"table": table},
        ).mappings().all()
        return [
            CatalogColumn(
                name=_as_text(r["column_name"]),
                type=_as_text(r["column_type"]),
                nullable=_as_text(r["is_nullable"]).upper() == "YES",
                default=r["column_default"],
                ordinal=int(r["ordinal_position"]),
            )
            for r in rows
        ]

    def table_primary_key(self, table: str) -> list[str]:
        rows = self.conn.execute(
            text(
                "SELECT COLUMN_NAME AS column_name "
                "FROM information_schema.KEY_COLUMN_USAGE "
                "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table "
                "AND CONSTRAINT_NAME = 'PRIMARY' "
                "ORDER BY ORDINAL_POSITION"
            ),
            {"table": table},
        ).mappings().all()
        return [_as_text(r["column_name"]) for r in rows]

    def table_foreign_keys(self, table: str) -> list[CatalogForeignKey]:
        rows = self.conn.execute(
            text(
                "SELECT COLUMN_NAME AS column_name, "
                "REFERENCED_TABLE_NAME AS referenced_table_name, "
                "REFERENCED_COLUMN_NAME AS referenced_column_name "
                "FROM information_schema.KEY_COLUMN_USAGE "
                "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table "
                "AND REFERENCED_TABLE_NAME IS NOT NULL"
            ),
            {"table": table},
        ).mappings().all()
        return [
            CatalogForeignKey(
                column=_as_text(r["column_name"]),
                ref_table=_as_text(r["referenced_table_name"]),
                ref_column=_as_text(r["referenced_column_name"]),
            )
            for r in rows
        ]


CATALOGS: dict[str, type[Catalog]] = {
    "sqlite": SqliteCatalog,
    "mysql": MysqlCatalog,
    "mariadb": MysqlCatalog,
}


def get_catalog(db_type: str, conn: Connection) -> Catalog:
    catalog_cls = CATALOGS.get((db_type or "").lower())
    if catalog_cls is None:
        raise UnsupportedEngineError(db_type, sorted(CATALOGS))
    return catalog_cls(conn)


# ── Inspection ────────────────────────────────────────────────────────────────

def filter_tables(
    tables: list[str],
    include: Optional[list[str]] = None,
    exclude: Optional[list[str]] = None,
) -> list[str]:
    """Apply include/exclude filters. include takes precedence; exclude is then ignored."""
    if include is not None:
        wanted = set(include)
        return [t for t in tables if t in wanted]
    if exclude is not None:
        unwanted = set(exclude)
        return [t for t in tables if t not in unwanted]
    return list(tables)


def inspect_table(catalog: Catalog, table: str) -> TableSchema:
    columns = sorted(catalog.table_columns(table), key=lambda c: c.ordinal)
    table_schema = TableSchema(
        columns={
            c.name: ColumnInfo(
                type=c.type.lower(),
                nullable=c.nullable,
                default_value=normalize_default_value(c.default),
            )
            for c in columns
        },
    )

    primary_key = list(catalog.table_primary_key(table))
    # Sort PK only if composite
    if len(primary_key) > 1:
        primary_key.sort()
    table_schema.primary_key = primary_key

    table_schema.foreign_keys = sorted(
        (
            ForeignKeyInfo(column=fk.column, references=fk.ref_table, on_column=fk.ref_column)
            for fk in catalog.table_foreign_keys(table)
        ),
        key=lambda fk: fk.column,
    )
    return table_schema


def inspect_schema(
    conn: Connection,
    db_type: str,
    include: Optional[list[str]] = None,
    exclude: Optional[list[str]] = None,
    migrations_prefix: Optional[str] = None,
) -> DatabaseSchema:
    """
    Inspect the database behind `conn` and return its schema.
    Returns an empty dict (after logging a warning) when no tables survive filtering.
    Raises UnsupportedEngineError or InspectionError.
    """
    catalog = get_catalog(db_type, conn)
    prefix = settings.MIGRATIONS_TABLE_PREFIX if migrations_prefix is None else migrations_prefix

    try:
        tables = catalog.list_tables()
    except Exception as e:
        logger.error("Error listing tables: %s", e)
        raise InspectionError(None, e) from e
    if prefix:
        tables = [t for t in tables if not t.startswith(prefix)]
    tables = filter_tables(tables, include, exclude)

    if not tables:
        logger.warning("No tables found to inspect (excluding migrations table).")
        return {}

    logger.info("Inspecting tables: %s", ", ".join(tables))

    schema: DatabaseSchema = {}
    for table in tables:
        logger.debug("Processing %s", table)
        try:
            schema[table] = inspect_table(catalog, table)
        except Exception as e:
            logger.error("Error processing table %s: %s", table, e)
            raise InspectionError(table, e) from e
    return schema

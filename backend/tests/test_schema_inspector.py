import logging
import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import InspectionError, UnsupportedEngineError
from core.schema_inspector import (
    MysqlCatalog,
    SqliteCatalog,
    filter_tables,
    get_catalog,
    inspect_schema,
    normalize_default_value,
)


# ── Default normalization ─────────────────────────────────────────────────────

@pytest.mark.parametrize("raw, expected", [
    (None, None),
    ("NULL", None),
    ("null", None),
    ("CURRENT_TIMESTAMP", "CURRENT_TIMESTAMP"),
    ("CURRENT_TIMESTAMP(3)", "CURRENT_TIMESTAMP"),
    ("current_timestamp()", "CURRENT_TIMESTAMP"),
    ("'untitled'", "untitled"),
    ('"draft"', "draft"),
    ("b'1'", "1"),
    (b"b'0'", "0"),
    (b"hello", "hello"),
    ("0", "0"),
    (42, "42"),
])
def test_normalize_default_value(raw, expected):
    assert normalize_default_value(raw) == expected


def test_normalize_keeps_lone_quote():
    assert normalize_default_value("'") == "'"


# ── Filtering ─────────────────────────────────────────────────────────────────

def test_filter_include_wins_over_exclude():
    assert filter_tables(["authors", "books"], include=["books"], exclude=["books"]) == ["books"]


def test_filter_exclude_only():
    assert filter_tables(["authors", "books"], exclude=["books"]) == ["authors"]


def test_filter_keeps_listing_order():
    assert filter_tables(["c", "a", "b"], include=["b", "c"]) == ["c", "b"]


# ── SQLite ────────────────────────────────────────────────────────────────────

def test_get_catalog_dispatch(sqlite_conn):
    assert isinstance(get_catalog("sqlite", sqlite_conn), SqliteCatalog)
    assert isinstance(get_catalog("mysql", sqlite_conn), MysqlCatalog)
    assert isinstance(get_catalog("MariaDB", sqlite_conn), MysqlCatalog)


def test_unsupported_engine(sqlite_conn):
    with pytest.raises(UnsupportedEngineError) as exc_info:
        inspect_schema(sqlite_conn, "postgresql")
    assert exc_info.value.db_type == "postgresql"


def test_inspect_sqlite_excludes_migrations_table(sqlite_conn):
    schema = inspect_schema(sqlite_conn, "sqlite")
    assert sorted(schema) == ["authors", "book_tags", "books", "publishers"]


def test_inspect_sqlite_columns(sqlite_conn):
    books = inspect_schema(sqlite_conn, "sqlite", include=["books"])["books"]

    assert list(books.columns) == ["id", "title", "publisher_id", "author_id", "rating", "created_at"]
    assert books.columns["title"].type == "varchar(255)"
    assert books.columns["title"].nullable is False
    assert books.columns["title"].default_value == "untitled"
    assert books.columns["rating"].default_value is None
    assert books.columns["created_at"].default_value == "CURRENT_TIMESTAMP"
    assert books.primary_key == ["id"]


def test_inspect_sqlite_foreign_keys_sorted(sqlite_conn):
    books = inspect_schema(sqlite_conn, "sqlite", include=["books"])["books"]
    assert [(fk.column, fk.references, fk.on_column) for fk in books.foreign_keys] == [
        ("author_id", "authors", "id"),
        ("publisher_id", "publishers", "id"),
    ]


def test_inspect_sqlite_composite_primary_key_sorted(sqlite_conn):
    tags = inspect_schema(sqlite_conn, "sqlite", include=["book_tags"])["book_tags"]
    # declared as PRIMARY KEY (tag, book_id)
    assert tags.primary_key == ["book_id", "tag"]


def test_include_and_exclude_same_table(sqlite_conn):
    schema = inspect_schema(sqlite_conn, "sqlite", include=["books"], exclude=["books"])
    assert list(schema) == ["books"]


def test_empty_filter_returns_empty_schema(sqlite_conn, caplog):
    with caplog.at_level(logging.WARNING, logger="core.schema_inspector"):
        schema = inspect_schema(sqlite_conn, "sqlite", include=["does_not_exist"])
    assert schema == {}
    assert "No tables found to inspect" in caplog.text


def test_custom_migrations_prefix(sqlite_conn):
    schema = inspect_schema(sqlite_conn, "sqlite", migrations_prefix="book")
    assert sorted(schema) == ["alembic_version", "authors", "publishers"]


# ── MySQL (catalog rows faked) ────────────────────────────────────────────────

class FakeResult:
    def __init__(self, rows):
        self.rows = rows

    def all(self):
        return [tuple(r.values()) for r in self.rows]

    def mappings(self):
        return FakeMappings(self.rows)


class FakeMappings:
    def __init__(self, rows):
        self.rows = rows

    def all(self):
        return list(self.rows)


class FakeMysqlConnection:
    """Answers the information_schema queries MysqlCatalog issues."""

    def __init__(self, tables, fail_information_schema=False, fail_show_tables=False, fail_on_table=None):
        self.tables = tables
        self.fail_information_schema = fail_information_schema
        self.fail_show_tables = fail_show_tables
        self.fail_on_table = fail_on_table
        self.statements = []

    def execute(self, clause, params=None):
        sql = str(clause)
        self.statements.append(sql)
        table = (params or {}).get("table")

        if "information_schema.tables" in sql:
            if self.fail_information_schema:
                raise OperationalError(sql, {}, Exception("SELECT command denied"))
            return FakeResult([{"table_name": name} for name in sorted(self.tables)])
        if sql == "SHOW TABLES":
            if self.fail_show_tables:
                raise OperationalError(sql, {}, Exception("Lost connection to MySQL server"))
            # SHOW TABLES is not guaranteed to be ordered
            return FakeResult([{"Tables_in_shop": name} for name in reversed(sorted(self.tables))])
        if self.fail_on_table is not None and table == self.fail_on_table:
            raise OperationalError(sql, params, Exception("Lost connection to MySQL server"))
        if "information_schema.COLUMNS" in sql:
            return FakeResult(self.tables[table]["columns"])
        if "CONSTRAINT_NAME = 'PRIMARY'" in sql:
            return FakeResult([{"column_name": c} for c in self.tables[table]["pk"]])
        if "REFERENCED_TABLE_NAME IS NOT NULL" in sql:
            return FakeResult(self.tables[table]["fks"])
        raise AssertionError(f"unexpected query: {sql}")


def _column(name, column_type, nullable="YES", default=None, ordinal=1):
    return {
        "column_name": name,
        "column_type": column_type,
        "is_nullable": nullable,
        "column_default": default,
        "ordinal_position": ordinal,
    }


MYSQL_TABLES = {
    "books": {
        "columns": [
            _column("id", "INT UNSIGNED", "NO", None, 1),
            _column("title", "varchar(255)", "YES", None, 2),
            _column("is_public", "bit(1)", "NO", "b'1'", 3),
            _column("created_at", "timestamp(3)", "YES", "CURRENT_TIMESTAMP(3)", 4),
            _column("note", "text", "YES", "NULL", 5),
        ],
        "pk": ["id"],
        "fks": [
            {"column_name": "shelf_id", "referenced_table_name": "shelves", "referenced_column_name": "id"},
            {"column_name": "author_id", "referenced_table_name": "authors", "referenced_column_name": "id"},
        ],
    },
    "loans": {
        "columns": [
            _column("user_id", "int", "NO", None, 1),
            _column("book_id", "int", "NO", None, 2),
        ],
        "pk": ["user_id", "book_id"],
        "fks": [],
    },
    "alembic_version": {"columns": [], "pk": [], "fks": []},
}


def test_mysql_normalizes_defaults_and_types():
    conn = FakeMysqlConnection(MYSQL_TABLES)
    books = inspect_schema(conn, "mysql", include=["books"])["books"]

    assert books.columns["id"].type == "int unsigned"
    assert books.columns["id"].nullable is False
    assert books.columns["is_public"].default_value == "1"
    assert books.columns["created_at"].default_value == "CURRENT_TIMESTAMP"
    assert books.columns["note"].default_value is None
    assert [fk.column for fk in books.foreign_keys] == ["author_id", "shelf_id"]


def test_mysql_composite_primary_key_sorted():
    conn = FakeMysqlConnection(MYSQL_TABLES)
    loans = inspect_schema(conn, "mysql", include=["loans"])["loans"]
    assert loans.primary_key == ["book_id", "user_id"]


def test_mysql_queries_are_scoped_to_current_database():
    conn = FakeMysqlConnection(MYSQL_TABLES)
    inspect_schema(conn, "mysql", include=["books"])
    assert all("DATABASE()" in sql for sql in conn.statements)


def test_mysql_show_tables_fallback_matches_primary(caplog):
    primary = MysqlCatalog(FakeMysqlConnection(MYSQL_TABLES)).list_tables()
    with caplog.at_level(logging.WARNING, logger="core.schema_inspector"):
        fallback = MysqlCatalog(FakeMysqlConnection(MYSQL_TABLES, fail_information_schema=True)).list_tables()

    assert fallback == primary == ["alembic_version", "books", "loans"]
    assert "falling back to SHOW TABLES" in caplog.text


def test_mysql_fallback_inspection_skips_migrations():
    conn = FakeMysqlConnection(MYSQL_TABLES, fail_information_schema=True)
    schema = inspect_schema(conn, "mysql")
    assert list(schema) == ["books", "loans"]


def test_table_failure_aborts_inspection():
    conn = FakeMysqlConnection(MYSQL_TABLES, fail_on_table="loans")
    with pytest.raises(InspectionError) as exc_info:
        inspect_schema(conn, "mysql")

    assert exc_info.value.table == "loans"
    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert "Lost connection" in exc_info.value.message


def test_listing_failure_aborts_inspection():
    conn = FakeMysqlConnection(MYSQL_TABLES, fail_information_schema=True, fail_show_tables=True)
    with pytest.raises(InspectionError) as exc_info:
        inspect_schema(conn, "mysql")

    assert exc_info.value.table is None
    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert exc_info.value.message.startswith("Failed to list tables")


def test_sqlite_listing_failure_aborts_inspection(sqlite_conn, monkeypatch):
    def locked(self):
        raise OperationalError("SELECT name FROM sqlite_master", {}, Exception("database is locked"))

    monkeypatch.setattr(SqliteCatalog, "list_tables", locked)
    with pytest.raises(InspectionError) as exc_info:
        inspect_schema(sqlite_conn, "sqlite")

    assert exc_info.value.table is None
    assert "database is locked" in exc_info.value.message

import os
import sys

# Add the parent directory (backend) to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import sqlite3
import tempfile
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from main import app

SCHEMA_DDL = [
    "CREATE TABLE alembic_version (version_num VARCHAR(32) NOT NULL PRIMARY KEY);",
    "CREATE TABLE authors (id INTEGER PRIMARY KEY, name TEXT NOT NULL);",
    "CREATE TABLE publishers (id INTEGER PRIMARY KEY, name TEXT);",
    """
    CREATE TABLE books (
        id INTEGER PRIMARY KEY,
        title VARCHAR(255) NOT NULL DEFAULT 'untitled',
        publisher_id INTEGER REFERENCES publishers(id),
        author_id INTEGER REFERENCES authors(id),
        rating REAL DEFAULT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE book_tags (
        tag TEXT NOT NULL,
        book_id INTEGER NOT NULL REFERENCES books(id),
        PRIMARY KEY (tag, book_id)
    );
    """,
]


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def temp_sqlite_db():
    fd, path = tempfile.mkstemp(suffix=".db")
    try:
        conn = sqlite3.connect(path)
        cur = conn.cursor()
        for stmt in SCHEMA_DDL:
            cur.execute(stmt)
        cur.execute("INSERT INTO authors (id, name) VALUES (1, 'Ada Brooks');")
        cur.execute("INSERT INTO books (id, title, author_id) VALUES (1, 'Gardens at Dawn', 1);")
        cur.execute("INSERT INTO books (id, title, author_id) VALUES (2, 'Glass Rivers', 1);")
        cur.execute("INSERT INTO books (id, title) VALUES (3, 'Winter Maps');")
        conn.commit()
        conn.close()
        yield path
    finally:
        os.close(fd)
        os.remove(path)


@pytest.fixture
def sqlite_engine(temp_sqlite_db):
    engine = create_engine(f"sqlite:///{temp_sqlite_db}")
    yield engine
    engine.dispose()


@pytest.fixture
def sqlite_conn(sqlite_engine):
    with sqlite_engine.connect() as conn:
        yield conn

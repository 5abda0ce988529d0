#!/usr/bin/env python3
"""
Seed a local SQLite database with a demo book catalog.
Usage (from the repository root):
    python scripts/seed_demo_db.py
Creates: demo.db (the default DATABASE_URL)
"""
import random
import sqlite3
import uuid
from datetime import datetime, timedelta
from pathlib import Path

DB_PATH = Path(__file__).resolve().parent.parent / "demo.db"

DDL = [
    """
    CREATE TABLE IF NOT EXISTS alembic_version (
        version_num VARCHAR(32) NOT NULL PRIMARY KEY
    )""",
    """
    CREATE TABLE IF NOT EXISTS users (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        uuid        VARCHAR(36) UNIQUE NOT NULL,
        name        VARCHAR(255) NOT NULL,
        email       VARCHAR(255) UNIQUE NOT NULL,
        password    VARCHAR(255) NOT NULL,
        created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
    """
    CREATE TABLE IF NOT EXISTS books (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        uuid        VARCHAR(255) UNIQUE NOT NULL,
        title       VARCHAR(255),
        author      VARCHAR(255),
        author_uuid VARCHAR(255) REFERENCES users(uuid),
        created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
]

FIRST_WORDS = ["Gardens", "Ghosts", "Rivers", "Shadows", "Letters", "Stars", "Glass", "Winter", "Maps", "Echoes"]
SECOND_WORDS = ["of the North", "in Autumn", "and Salt", "Without End", "of Memory", "at Dawn", "for Strangers"]
AUTHORS = ["Ada Brooks", "Kenji Mori", "Lena Fischer", "Omar Haddad", "Priya Nair", "Tom Walsh"]


def seed():
    conn = sqlite3.connect(DB_PATH)
    cur = conn.cursor()

    for stmt in DDL:
        cur.execute(stmt)

    cur.execute("INSERT OR IGNORE INTO alembic_version(version_num) VALUES ('0001_books')")

    # users (one per author)
    author_uuids = {}
    for i, name in enumerate(AUTHORS, start=1):
        author_uuid = str(uuid.uuid4())
        author_uuids[name] = author_uuid
        cur.execute("INSERT OR IGNORE INTO users(uuid, name, email, password) VALUES (?,?,?,?)",
                    (author_uuid, name, f"author{i}@example.com", "!disabled"))

    # books (200)
    for _ in range(200):
        title = f"{random.choice(FIRST_WORDS)} {random.choice(SECOND_WORDS)}"
        author = random.choice(AUTHORS + [None])
        created = datetime.now() - timedelta(days=random.randint(0, 730))
        cur.execute("INSERT INTO books(uuid, title, author, author_uuid, created_at, updated_at) VALUES (?,?,?,?,?,?)",
                    (str(uuid.uuid4()), title, author, author_uuids.get(author), created,
                     created + timedelta(days=random.randint(0, 30))))

    conn.commit()
    conn.close()
    print(f"Demo database seeded: {DB_PATH}")
    print("   Tables: books, users (alembic_version is skipped by inspection)")


if __name__ == "__main__":
    seed()

#!/usr/bin/env python3
"""
Inspect the configured database, print the schema, and optionally ask one question.
Usage (from the repository root):
    python scripts/playground.py
    python scripts/playground.py --tables books --json
    python scripts/playground.py --prompt 'book name starts with "g"'
"""
import argparse
import json
import logging
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend")))

from config import settings  # noqa: E402
from core.db_connector import create_engine_from_url, detect_db_type  # noqa: E402
from core.exceptions import Text2SQLError  # noqa: E402
from core.query_service import QueryService  # noqa: E402
from core.schema_formatter import to_json, to_text  # noqa: E402
from core.schema_inspector import inspect_schema  # noqa: E402

logger = logging.getLogger("playground")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--url", default=settings.DATABASE_URL, help="SQLAlchemy database URL")
    parser.add_argument("--tables", default=settings.QUERY_TABLES, help="Comma-separated tables to include ('' for all)")
    parser.add_argument("--exclude", default="", help="Comma-separated tables to exclude (ignored with --tables)")
    parser.add_argument("--json", action="store_true", help="Also print the JSON form")
    parser.add_argument("--prompt", help="Question to send to the model")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    include = [t.strip() for t in args.tables.split(",") if t.strip()] or None
    exclude = [t.strip() for t in args.exclude.split(",") if t.strip()] or None

    engine = create_engine_from_url(args.url)
    db_type = detect_db_type(engine, settings.DB_TYPE)
    try:
        with engine.connect() as conn:
            try:
                schema = inspect_schema(conn, db_type, include=include, exclude=exclude)
            except Text2SQLError as e:
                logger.error("Failed to inspect database schema: %s", e.message)
                return 1

            if not schema:
                logger.warning("No schema information was generated.")

            print("\n--- Text Output ---")
            print(to_text(schema))
            if args.json:
                print("\n--- JSON Output ---")
                print(to_json(schema))

            if not args.prompt or not schema:
                return 0

            service = QueryService(conn, db_type, tables=include or list(schema))
            try:
                session = service.init()
                rows = service.query(args.prompt, session)
            except Text2SQLError as e:
                logger.error("%s: %s", type(e).__name__, e.message)
                return 1
            print("\n--- Rows ---")
            print(json.dumps(rows, indent=2, default=str))
    finally:
        engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())

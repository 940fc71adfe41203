from __future__ import annotations

import logging
import re
from contextlib import closing
from pathlib import Path
from typing import List

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

# schema.sql ends every statement with ';' at the end of a line
_STATEMENT_END = re.compile(r";\s*$", re.MULTILINE)
_SKIPPED = re.compile(r"^\s*(CREATE\s+DATABASE|USE)\b", re.IGNORECASE)


def schema_statements(script: str) -> List[str]:
    """Statements of a schema script, minus comments and CREATE DATABASE / USE lines."""
    lines = [line for line in script.splitlines() if not line.lstrip().startswith("--")]
    chunks = _STATEMENT_END.split("\n".join(lines))
    return [c.strip() for c in chunks if c.strip() and not _SKIPPED.match(c)]


def _server_connection(config: DBConfig, database: bool = True):
    return mysql.connector.connect(
        host=config.host,
        port=config.port,
        user=config.user,
        password=config.password,
        charset="utf8mb4",
        **({"database": config.database} if database else {}),
    )


def apply_schema(db_config: dict, *, schema_path: Path) -> int:
    """Create the database if needed and run schema.sql against it.

    Every table uses CREATE TABLE IF NOT EXISTS, so this is safe on each start.
    Returns the number of statements executed.
    """
    config = DBConfig.from_dict(db_config)
    with closing(_server_connection(config, database=False)) as conn, closing(conn.cursor()) as cur:
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )

    statements = schema_statements(schema_path.read_text(encoding="utf-8"))
    with closing(_server_connection(config)) as conn:
        with closing(conn.cursor()) as cur:
            for stmt in statements:
                cur.execute(stmt)
        conn.commit()

    logger.info("schema applied (%d statements) to %s", len(statements), config.describe())
    return len(statements)


def list_tables(db_config: dict) -> List[str]:
    config = DBConfig.from_dict(db_config)
    with closing(_server_connection(config)) as conn, closing(conn.cursor()) as cur:
        cur.execute("SHOW TABLES")
        return sorted(str(row[0]) for row in cur.fetchall())

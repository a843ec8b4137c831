"""Database helpers: connection pool, transactions, schema, run tracking."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Generator, Optional

import psycopg2
import psycopg2.extras
import psycopg2.pool

from scripts.astros.config import DatabaseConfig

logger = logging.getLogger("astros.db")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS astronauts (
    id          BIGSERIAL PRIMARY KEY,
    name        TEXT NOT NULL,
    craft       TEXT NOT NULL,
    image_url   TEXT,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (name, craft)
);

CREATE TABLE IF NOT EXISTS sync_runs (
    id             UUID PRIMARY KEY,
    status         TEXT NOT NULL,
    started_at     TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    finished_at    TIMESTAMPTZ,
    removed        INTEGER NOT NULL DEFAULT 0,
    added          INTEGER NOT NULL DEFAULT 0,
    updated        INTEGER NOT NULL DEFAULT 0,
    skipped        INTEGER NOT NULL DEFAULT 0,
    error_message  TEXT,
    error_detail   JSONB
);
"""


class Database:
    """Thin wrapper around a ThreadedConnectionPool."""

    def __init__(self, config: DatabaseConfig) -> None:
        self._pool = psycopg2.pool.ThreadedConnectionPool(
            minconn=config.min_connections,
            maxconn=config.max_connections,
            dsn=config.url,
        )

    def close(self) -> None:
        self._pool.closeall()

    @contextmanager
    def connection(self) -> Generator:
        conn = self._pool.getconn()
        try:
            yield conn
        finally:
            self._pool.putconn(conn)

    @contextmanager
    def transaction(self) -> Generator:
        """Yield a cursor inside an auto-commit/rollback transaction."""
        with self.connection() as conn:
            try:
                with conn.cursor() as cur:
                    yield cur
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def ensure_schema(self) -> None:
        with self.transaction() as cur:
            cur.execute(SCHEMA_SQL)
        logger.info("Schema ready")

    # ------------------------------------------------------------------
    # Sync run tracking
    # ------------------------------------------------------------------

    def record_run_start(self) -> str:
        """Insert a sync_runs row with status RUNNING. Returns the run id."""
        run_id = str(uuid.uuid4())
        with self.transaction() as cur:
            cur.execute(
                "INSERT INTO sync_runs (id, status) VALUES (%s, 'RUNNING')",
                (run_id,),
            )
        return run_id

    def record_run_end(
        self,
        run_id: str,
        status: str,
        counts: Optional[dict[str, int]] = None,
        error_message: Optional[str] = None,
        error_detail: Optional[dict] = None,
    ) -> None:
        counts = counts or {}
        with self.transaction() as cur:
            cur.execute(
                """UPDATE sync_runs
                   SET status = %s,
                       finished_at = NOW(),
                       removed = %s,
                       added = %s,
                       updated = %s,
                       skipped = %s,
                       error_message = %s,
                       error_detail = %s
                   WHERE id = %s""",
                (
                    status,
                    counts.get("removed", 0),
                    counts.get("added", 0),
                    counts.get("updated", 0),
                    counts.get("skipped", 0),
                    error_message,
                    psycopg2.extras.Json(error_detail) if error_detail else None,
                    run_id,
                ),
            )

    def get_recent_runs(self, limit: int = 10) -> list[dict[str, Any]]:
        with self.transaction() as cur:
            cur.execute(
                """SELECT id, status, started_at, finished_at,
                          removed, added, updated, skipped, error_message
                   FROM sync_runs
                   ORDER BY started_at DESC LIMIT %s""",
                (limit,),
            )
            cols = [d[0] for d in cur.description]
            return [dict(zip(cols, row)) for row in cur.fetchall()]

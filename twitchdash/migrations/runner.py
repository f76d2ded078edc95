"""Migration runner with a tracking table."""

from __future__ import annotations

import logging
from pathlib import Path

import asyncpg

logger = logging.getLogger(__name__)

VERSIONS_DIR = Path(__file__).resolve().parent / "versions"


class MigrationRunner:
    """Apply ``versions/NNN_name.sql`` files in filename order, each at most once.

    Applied versions are recorded in ``schema_migrations``.
    """

    TRACKING_TABLE = "schema_migrations"

    def __init__(self, pool: asyncpg.Pool, versions_dir: Path = VERSIONS_DIR) -> None:
        self.pool = pool
        self.versions_dir = versions_dir

    async def ensure_table(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.TRACKING_TABLE} (
                    version    TEXT PRIMARY KEY,
                    name       TEXT NOT NULL,
                    applied_at TIMESTAMPTZ DEFAULT NOW()
                )
                """
            )

    async def get_applied(self) -> set[str]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(f"SELECT version FROM {self.TRACKING_TABLE}")  # noqa: S608
            return {row["version"] for row in rows}

    async def get_pending(self) -> list[Path]:
        """SQL files not yet recorded as applied."""
        await self.ensure_table()
        applied = await self.get_applied()
        return [p for p in sorted(self.versions_dir.glob("*.sql")) if p.stem not in applied]

    async def run_pending(self) -> list[str]:
        """Apply every pending migration. Returns the newly applied versions."""
        pending = await self.get_pending()
        for sql_path in pending:
            await self._apply_one(sql_path)

        if pending:
            applied = ", ".join(p.stem for p in pending)
            logger.info(f"Applied {len(pending)} migration(s): {applied}")
        else:
            logger.info("Database is up to date, no pending migrations")
        return [p.stem for p in pending]

    async def _apply_one(self, sql_path: Path) -> None:
        """Execute one migration and record it in the same transaction."""
        version = sql_path.stem
        logger.info(f"Applying migration: {version}")
        sql = sql_path.read_text(encoding="utf-8")
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(sql)
                await conn.execute(
                    f"INSERT INTO {self.TRACKING_TABLE} (version, name) "  # noqa: S608
                    "VALUES ($1, $2)",
                    version,
                    sql_path.name,
                )

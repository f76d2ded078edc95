"""Run database migrations.

Usage:
    python -m twitchdash.migrations          # Apply all pending migrations
    python -m twitchdash.migrations --dry    # List pending migrations only
"""

import argparse
import asyncio
import logging

from twitchdash.core.config import get_settings
from twitchdash.core.database import DatabaseManager, PoolConfig
from twitchdash.core.logging import setup_logging

from .runner import MigrationRunner

logger = logging.getLogger(__name__)


async def main(dry: bool) -> None:
    settings = get_settings()
    setup_logging(settings)

    db_manager = DatabaseManager(settings.database_url, PoolConfig(min_size=1, max_size=2))
    await db_manager.connect()
    try:
        runner = MigrationRunner(db_manager.pool)
        if dry:
            pending = await runner.get_pending()
            logger.info(f"Pending: {len(pending)}")
            for path in pending:
                logger.info(f"  -> {path.stem}")
        else:
            await runner.run_pending()
    finally:
        await db_manager.disconnect()


def cli() -> None:
    parser = argparse.ArgumentParser(description="Apply twitchdash schema migrations")
    parser.add_argument("--dry", action="store_true", help="show pending migrations only")
    args = parser.parse_args()
    asyncio.run(main(args.dry))


if __name__ == "__main__":
    cli()

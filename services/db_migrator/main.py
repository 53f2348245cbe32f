"""
Creates the database schema and runs every data seeder.

    python -m services.db_migrator.main
"""
import asyncio
import sys

import structlog

from services.identity_service.seed import run_data_seeders
from shared.config.database import AsyncSessionLocal, create_all_tables, engine
from shared.exceptions import BusinessException
from shared.observability.setup import configure_logging

logger = structlog.get_logger(__name__)


async def migrate(configuration: dict | None = None) -> list:
    logger.info("migration_started")
    await create_all_tables()

    async with AsyncSessionLocal() as session:
        results = await run_data_seeders(session, configuration)

    logger.info("migration_finished", seeded=len(results))
    return results


async def main() -> int:
    configure_logging()
    try:
        await migrate()
    except BusinessException as exc:
        logger.error("migration_failed", code=exc.code, detail=exc.message)
        return 1
    finally:
        await engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

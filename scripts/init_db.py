"""Script to initialize the database without running migrations."""

import asyncio

from sqlalchemy import text

from workforce_portal.database import engine
from workforce_portal.models import metadata


async def init_db() -> None:
    """Initialize the database by creating all notification tables."""
    async with engine.begin() as conn:
        # gen_random_uuid for migrations that rely on server side ids
        await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))

        await conn.run_sync(metadata.create_all)

        print(f"Database initialized with {len(metadata.tables)} tables")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_db())

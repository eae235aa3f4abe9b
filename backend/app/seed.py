"""Create tables and load the default services and bays. Safe to run repeatedly."""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Base, Bay, BayType, Service

logger = logging.getLogger(__name__)

DEFAULT_SERVICES = [
    {"name": "Golf 1 Hour", "slug": "golf-1h", "duration_minutes": 60, "price_cents": 4000},
    {"name": "Golf 2 Hours", "slug": "golf-2h", "duration_minutes": 120, "price_cents": 7500},
    {"name": "Golf 4 Hours", "slug": "golf-4h", "duration_minutes": 240, "price_cents": 14000},
    {"name": "Golf 2.5 Hours", "slug": "golf-2-5-hours", "duration_minutes": 150, "price_cents": 9500},
]

DEFAULT_BAYS = [
    {"name": "Prime A", "type": BayType.PRIME, "capacity": 10},
    {"name": "Prime B", "type": BayType.PRIME, "capacity": 10},
    {"name": "Bay 1", "type": BayType.STANDARD, "capacity": 4},
    {"name": "Bay 2", "type": BayType.STANDARD, "capacity": 4},
    {"name": "Bay 3", "type": BayType.STANDARD, "capacity": 4},
    {"name": "Bay 4", "type": BayType.STANDARD, "capacity": 4},
]


async def seed_core(session: AsyncSession) -> tuple[int, int]:
    """Insert missing services (by slug) and bays (by name). Returns how many of each were added."""
    existing_slugs = set((await session.scalars(select(Service.slug))).all())
    existing_bays = set((await session.scalars(select(Bay.name))).all())

    new_services = [Service(**row) for row in DEFAULT_SERVICES if row["slug"] not in existing_slugs]
    new_bays = [Bay(**row) for row in DEFAULT_BAYS if row["name"] not in existing_bays]
    session.add_all([*new_services, *new_bays])
    await session.flush()
    return len(new_services), len(new_bays)


async def main() -> None:
    from .database import async_session, engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_session() as session, session.begin():
        services, bays = await seed_core(session)
    logger.info("seeded core data: services=%s bays=%s", services, bays)
    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())

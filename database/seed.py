"""
Demo data — two users created on an empty database.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from auth.store import CredentialStore

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "qazwsX123@"

DEMO_USERS = [
    {
        "display_name": "TestUserFirst",
        "username": "TestUserFirst",
        "email": "testuserfirst@test.com",
    },
    {
        "display_name": "TestUserSecond",
        "username": "TestUserSecond",
        "email": "testusersecond@test.com",
    },
]


async def seed_demo_users(session: AsyncSession) -> int:
    """Create the demo users if the store is empty; return how many were added."""
    store = CredentialStore(session)
    if await store.count():
        return 0

    for user in DEMO_USERS:
        await store.create(password=DEMO_PASSWORD, **user)
    await session.commit()

    logger.info("Seeded %d demo users", len(DEMO_USERS))
    return len(DEMO_USERS)

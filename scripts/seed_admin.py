#!/usr/bin/env python3
"""Create the default permissions, the Admin role and an admin user.

The email, name and password come from ADMIN_EMAIL, ADMIN_NAME and
ADMIN_PASSWORD; the password is prompted for when ADMIN_PASSWORD is unset.
Safe to run repeatedly.
"""

import asyncio
import sys
from getpass import getpass
from pathlib import Path

# Make the schoolhub package importable when run from a checkout
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

from sqlmodel import SQLModel  # noqa: E402

from schoolhub.config import settings  # noqa: E402
from schoolhub.database import async_engine, async_session_maker  # noqa: E402
from schoolhub.services.seed import seed_admin  # noqa: E402
from schoolhub.utils.logger import log_timer, setup_logging, get_logger  # noqa: E402

logger = get_logger("seed_admin")


def read_password() -> str:
    if settings.ADMIN_PASSWORD:
        return settings.ADMIN_PASSWORD

    password = getpass("Admin password: ")
    if password != getpass("Confirm password: "):
        print("Error: passwords do not match")
        sys.exit(1)
    if len(password) < 8:
        print("Error: password must be at least 8 characters")
        sys.exit(1)
    return password


async def main(password: str) -> None:
    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    with log_timer("admin_seed", logger):
        async with async_session_maker() as session:
            user = await seed_admin(
                session,
                email=settings.ADMIN_EMAIL,
                password=password,
                name=settings.ADMIN_NAME,
            )

    await async_engine.dispose()

    print(f"Admin user ready: id={user.id} email={user.email} role_id={user.role_id}")


if __name__ == "__main__":
    setup_logging()
    try:
        asyncio.run(main(read_password()))
    except KeyboardInterrupt:
        print("\nCancelled")
        sys.exit(1)

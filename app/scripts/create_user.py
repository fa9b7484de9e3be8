import asyncio
import os
import sys

from sqlalchemy import select

from app.core.db import AsyncSessionLocal
from app.core.security import hash_password
from app.models.users.user_models import User
from app.utils.role_helpers import resolve_role


async def create_user(username: str, password: str, role: str, name: str | None = None):
    resolved = resolve_role({"role": role})
    if resolved is None:
        raise SystemExit(f"Unknown role: {role}")

    async with AsyncSessionLocal() as session:
        existing = await session.scalar(select(User).where(User.username == username))
        if existing:
            print(f"User {username} already exists")
            return

        session.add(
            User(
                username=username,
                name=name,
                password_hash=hash_password(password),
                role=resolved.value,
                is_active=True,
            )
        )
        await session.commit()
        print(f"User {username} created with role {resolved.value}")


def main(argv: list[str]):
    # usage: python -m app.scripts.create_user <email> <role> [name]
    if len(argv) < 2:
        raise SystemExit("usage: python -m app.scripts.create_user <email> <role> [name]")

    password = os.getenv("USER_PASSWORD")
    if not password:
        raise SystemExit("USER_PASSWORD is not set")

    asyncio.run(
        create_user(
            username=argv[0],
            password=password,
            role=argv[1],
            name=argv[2] if len(argv) > 2 else None,
        )
    )


if __name__ == "__main__":
    main(sys.argv[1:])


#!/usr/bin/env python3
"""Create the first top-level administrator (SUPER_ADMIN).

The public /auth/register endpoint refuses SUPER_ADMIN, so this is the only
way to provision one.

Usage:
    ADMIN_EMAIL=root@example.com ADMIN_PASSWORD='...' ADMIN_NAME='Root' python scripts/bootstrap_admin.py

    python scripts/bootstrap_admin.py --email root@example.com --password '...' --name Root

Environment Variables:
    ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME: admin credentials
    PG_*, REDIS_*, JWT_SECRET: same as the API (see workforce/core/config.py)
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys

MIN_PASSWORD_LENGTH = 12


async def bootstrap_admin(email: str, password: str, name: str) -> dict:
    # Imported here so settings are read after env vars are set
    from workforce.container import build_postgres_services
    from workforce.core.config import get_settings
    from workforce.core.db import create_pool
    from workforce.core.errors import EmailAlreadyExists
    from workforce.core.redis import create_redis
    from workforce.domain.models import UserRole

    settings = get_settings()
    redis_client = create_redis(settings)
    pool = create_pool(settings)
    try:
        services = build_postgres_services(settings, redis_client, pool)
        try:
            result = await services.auth.register(
                email=email,
                password=password,
                full_name=name,
                role=UserRole.SUPER_ADMIN,
                allow_privileged=True,
            )
        except EmailAlreadyExists:
            print(f"User {email} already exists; nothing to do")
            return {"email": email, "status": "exists"}
        # The bootstrap login is not a real session
        await services.auth.logout(result.user.id)
        print(f"Created SUPER_ADMIN {email} (id: {result.user.id})")
        return {"user_id": result.user.id, "email": email, "status": "created"}
    finally:
        await redis_client.aclose()
        pool.closeall()


def main() -> int:
    parser = argparse.ArgumentParser(description="Bootstrap a SUPER_ADMIN user")
    parser.add_argument("--email", default=os.environ.get("ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.environ.get("ADMIN_PASSWORD"))
    parser.add_argument("--name", default=os.environ.get("ADMIN_NAME", "Administrator"))
    args = parser.parse_args()

    if not args.email or not args.password:
        parser.error("email and password are required (flags or ADMIN_EMAIL/ADMIN_PASSWORD)")
    if len(args.password) < MIN_PASSWORD_LENGTH:
        parser.error(f"password must be at least {MIN_PASSWORD_LENGTH} characters")

    asyncio.run(bootstrap_admin(args.email, args.password, args.name))
    return 0


if __name__ == "__main__":
    sys.exit(main())

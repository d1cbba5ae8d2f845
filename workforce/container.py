"""
Composition root.

Wires repositories, cache, and services from already-open clients. The
clients themselves (Redis connection, Postgres pool) are opened and closed by
the application lifespan in main.py; tests build `Services` from fakes.
"""
from __future__ import annotations
from dataclasses import dataclass
from redis.asyncio import Redis
from psycopg2.pool import ThreadedConnectionPool
from workforce.core.auth import TokenIssuer
from workforce.core.cache import CacheStore
from workforce.core.config import Settings
from workforce.core.roles import AccessGuard
from workforce.repositories.company_repo import CompanyRepository, PostgresCompanyRepository
from workforce.repositories.user_repo import PostgresUserRepository, UserRepository
from workforce.services.auth_service import AuthService
from workforce.services.rate_limit import RateLimiter
from workforce.services.session_store import SessionStore
from workforce.services.tenant_service import TenantResolver
from workforce.services.user_cache import UserCache
from workforce.services.user_service import UserService


@dataclass
class Services:
    settings: Settings
    cache: CacheStore
    issuer: TokenIssuer
    sessions: SessionStore
    user_cache: UserCache
    tenants: TenantResolver
    guard: AccessGuard
    auth: AuthService
    users: UserService
    login_limiter: RateLimiter


def build_services(
    settings: Settings,
    redis_client: Redis,
    user_repo: UserRepository,
    company_repo: CompanyRepository,
) -> Services:
    cache = CacheStore(redis_client)
    issuer = TokenIssuer.from_settings(settings)
    sessions = SessionStore(cache, ttl=settings.SESSION_TTL_SEC)
    user_cache = UserCache(cache, ttl=settings.USER_CACHE_TTL_SEC)
    return Services(
        settings=settings,
        cache=cache,
        issuer=issuer,
        sessions=sessions,
        user_cache=user_cache,
        tenants=TenantResolver(company_repo),
        guard=AccessGuard(),
        auth=AuthService(
            users=user_repo,
            companies=company_repo,
            issuer=issuer,
            sessions=sessions,
            user_cache=user_cache,
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
        ),
        users=UserService(
            user_repo,
            user_cache,
            sessions,
            companies=company_repo,
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
        ),
        login_limiter=RateLimiter(
            cache,
            limit=settings.LOGIN_RATE_LIMIT,
            window_sec=settings.LOGIN_RATE_WINDOW_SEC,
            scope="login",
        ),
    )


def build_postgres_services(settings: Settings, redis_client: Redis, pool: ThreadedConnectionPool) -> Services:
    return build_services(
        settings,
        redis_client,
        user_repo=PostgresUserRepository(pool),
        company_repo=PostgresCompanyRepository(pool),
    )

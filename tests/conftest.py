"""Shared fixtures: in-memory Redis double, in-memory repositories, wired services."""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from workforce.container import build_services
from workforce.core.cache import CacheStore
from workforce.core.config import Settings
from workforce.core.errors import EmailAlreadyExists
from workforce.core.security import hash_password
from workforce.domain.models import (
    Company,
    CompanySettings,
    NewUser,
    Subscription,
    SubscriptionStatus,
    UserRecord,
    UserRole,
)
from workforce.main import create_app

TEST_ROUNDS = 4


class FakeRedis:
    """Async subset of redis.asyncio.Redis used by CacheStore, with a movable clock."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._expires: Dict[str, float] = {}
        self._offset = 0.0
        self.down = False

    def advance(self, seconds: float) -> None:
        self._offset += seconds

    def _now(self) -> float:
        return time.monotonic() + self._offset

    def _check(self) -> None:
        if self.down:
            raise RedisConnectionError("connection refused")

    def _purge(self, key: str) -> None:
        exp = self._expires.get(key)
        if exp is not None and exp <= self._now():
            self._data.pop(key, None)
            self._expires.pop(key, None)

    def ttl_of(self, key: str) -> Optional[float]:
        exp = self._expires.get(key)
        return None if exp is None else exp - self._now()

    def keys(self):
        for key in list(self._data):
            self._purge(key)
        return sorted(self._data)

    async def get(self, key):
        self._check()
        self._purge(key)
        return self._data.get(key)

    async def set(self, key, value, ex=None, nx=False):
        self._check()
        self._purge(key)
        if nx and key in self._data:
            return None
        self._data[key] = str(value)
        if ex:
            self._expires[key] = self._now() + ex
        else:
            self._expires.pop(key, None)
        return True

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            self._purge(key)
            if key in self._data:
                removed += 1
                self._data.pop(key)
                self._expires.pop(key, None)
        return removed

    async def incr(self, key):
        self._check()
        self._purge(key)
        value = int(self._data.get(key, "0")) + 1
        self._data[key] = str(value)
        return value

    async def ping(self):
        self._check()
        return True

    def pipeline(self, transaction=True):
        return FakePipeline(self)


class FakePipeline:
    """Buffers commands; execute() applies all of them or, when Redis is down, none."""

    def __init__(self, redis: FakeRedis):
        self._redis = redis
        self._commands = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self._commands.append((name, args, kwargs))
            return self
        return queue

    async def execute(self):
        self._redis._check()
        results = []
        for name, args, kwargs in self._commands:
            results.append(await getattr(self._redis, name)(*args, **kwargs))
        self._commands = []
        return results


class InMemoryUserRepository:
    def __init__(self):
        self.users: Dict[str, UserRecord] = {}
        self.reads_by_id = 0

    def add(
        self,
        email: str,
        password: str,
        role: UserRole = UserRole.EMPLOYEE,
        company_id: Optional[str] = None,
        is_active: bool = True,
        full_name: str = "Test User",
    ) -> UserRecord:
        now = datetime.now(timezone.utc)
        record = UserRecord(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=hash_password(password, rounds=TEST_ROUNDS),
            full_name=full_name,
            role=role,
            company_id=company_id,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        self.users[record.id] = record
        return record

    async def get_by_email(self, email: str) -> Optional[UserRecord]:
        return next((u for u in self.users.values() if u.email == email), None)

    async def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        self.reads_by_id += 1
        return self.users.get(user_id)

    async def create(self, new_user: NewUser) -> UserRecord:
        if await self.get_by_email(new_user.email):
            raise EmailAlreadyExists()
        now = datetime.now(timezone.utc)
        record = UserRecord(id=str(uuid.uuid4()), created_at=now, updated_at=now, **new_user.model_dump())
        self.users[record.id] = record
        return record

    async def update_password(self, user_id: str, password_hash: str) -> bool:
        if user_id not in self.users:
            return False
        self.users[user_id] = self.users[user_id].model_copy(update={"password_hash": password_hash})
        return True

    async def set_active(self, user_id: str, is_active: bool) -> Optional[UserRecord]:
        if user_id not in self.users:
            return None
        self.users[user_id] = self.users[user_id].model_copy(update={"is_active": is_active})
        return self.users[user_id]

    async def update_role(self, user_id: str, role: UserRole) -> Optional[UserRecord]:
        if user_id not in self.users:
            return None
        self.users[user_id] = self.users[user_id].model_copy(update={"role": role})
        return self.users[user_id]

    async def delete(self, user_id: str) -> bool:
        return self.users.pop(user_id, None) is not None

    async def list_users(
        self,
        company_id=None,
        role=None,
        is_active=None,
        search=None,
        offset=0,
        limit=10,
    ) -> Tuple[List[UserRecord], int]:
        matches = [
            u
            for u in self.users.values()
            if (company_id is None or u.company_id == company_id)
            and (role is None or u.role is role)
            and (is_active is None or u.is_active is is_active)
            and (not search or search.lower() in u.full_name.lower() or search.lower() in u.email.lower())
        ]
        matches.sort(key=lambda u: u.created_at, reverse=True)
        return matches[offset:offset + limit], len(matches)


class InMemoryCompanyRepository:
    def __init__(self):
        self.companies: Dict[str, Company] = {}

    def add(self, company_id: str, status: Optional[SubscriptionStatus], name: str = "Acme") -> Company:
        subscription = None
        if status is not None:
            subscription = Subscription(company_id=company_id, plan_id="plan-basic", status=status)
        company = Company(
            id=company_id,
            name=name,
            registration_code=f"REG-{company_id}",
            subscription=subscription,
            settings=CompanySettings(lateness_tolerance_minutes=10, allow_wfh=True),
        )
        self.companies[company_id] = company
        return company

    async def get_with_subscription(self, company_id: str) -> Optional[Company]:
        return self.companies.get(company_id)


@pytest.fixture
def settings():
    return Settings(
        JWT_SECRET="test-access-secret-not-for-production",
        JWT_REFRESH_SECRET="test-refresh-secret-not-for-production",
        BCRYPT_ROUNDS=TEST_ROUNDS,
        LOGIN_RATE_LIMIT=1000,
    )


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return CacheStore(fake_redis)


@pytest.fixture
def user_repo():
    return InMemoryUserRepository()


@pytest.fixture
def company_repo():
    repo = InMemoryCompanyRepository()
    repo.add("C1", SubscriptionStatus.ACTIVE, name="Active Co")
    repo.add("C2", SubscriptionStatus.PAST_DUE, name="Late Payer Co")
    repo.add("C3", None, name="No Subscription Co")
    repo.add("C4", SubscriptionStatus.TRIALING, name="Trial Co")
    return repo


@pytest.fixture
def services(settings, fake_redis, user_repo, company_repo):
    return build_services(settings, fake_redis, user_repo, company_repo)


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as c:
        yield c

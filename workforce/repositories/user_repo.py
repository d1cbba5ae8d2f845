"""
Repository for users.

Follows Layer 4 rules:
- Data access MUST be routed through repository layer
- No raw queries inside API routes

psycopg2 is blocking, so every query runs in the worker thread pool and the
async methods only await the result.
"""
from __future__ import annotations
from typing import List, Optional, Protocol, Tuple
import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2.pool import PoolError, ThreadedConnectionPool
from fastapi.concurrency import run_in_threadpool
from workforce.core.db import get_conn
from workforce.core.errors import DependencyUnavailable, EmailAlreadyExists
from workforce.core.logger import log_incident
from workforce.domain.models import NewUser, UserRecord, UserRole


class UserRepository(Protocol):
    async def get_by_email(self, email: str) -> Optional[UserRecord]: ...

    async def get_by_id(self, user_id: str) -> Optional[UserRecord]: ...

    async def create(self, new_user: NewUser) -> UserRecord: ...

    async def update_password(self, user_id: str, password_hash: str) -> bool: ...

    async def set_active(self, user_id: str, is_active: bool) -> Optional[UserRecord]: ...

    async def update_role(self, user_id: str, role: UserRole) -> Optional[UserRecord]: ...

    async def delete(self, user_id: str) -> bool: ...

    async def list_users(
        self,
        company_id: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[UserRecord], int]: ...


_USER_COLUMNS = """
    id, email, password_hash, full_name, role, company_id,
    is_active, created_at, updated_at
"""


def _row_to_user(row) -> Optional[UserRecord]:
    if not row:
        return None
    return UserRecord(
        id=str(row[0]),
        email=row[1],
        password_hash=row[2],
        full_name=row[3],
        role=UserRole(row[4]),
        company_id=str(row[5]) if row[5] is not None else None,
        is_active=bool(row[6]),
        created_at=row[7],
        updated_at=row[8],
    )


class PostgresUserRepository:
    def __init__(self, pool: ThreadedConnectionPool):
        self._pool = pool

    async def get_by_email(self, email: str) -> Optional[UserRecord]:
        return await self._run(self._fetch_one, f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s LIMIT 1", (email,))

    async def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        return await self._run(self._fetch_one, f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s", (user_id,))

    async def create(self, new_user: NewUser) -> UserRecord:
        sql = f"""
            INSERT INTO users (email, password_hash, full_name, role, company_id, is_active)
            VALUES (%s, %s, %s, %s, %s, TRUE)
            RETURNING {_USER_COLUMNS}
        """
        params = (
            new_user.email,
            new_user.password_hash,
            new_user.full_name,
            new_user.role.value,
            new_user.company_id,
        )
        try:
            return await self._run(self._fetch_one, sql, params)
        except pg_errors.UniqueViolation:
            raise EmailAlreadyExists()

    async def update_password(self, user_id: str, password_hash: str) -> bool:
        sql = "UPDATE users SET password_hash = %s, updated_at = now() WHERE id = %s"
        return await self._run(self._execute, sql, (password_hash, user_id)) > 0

    async def set_active(self, user_id: str, is_active: bool) -> Optional[UserRecord]:
        sql = f"UPDATE users SET is_active = %s, updated_at = now() WHERE id = %s RETURNING {_USER_COLUMNS}"
        return await self._run(self._fetch_one, sql, (is_active, user_id))

    async def update_role(self, user_id: str, role: UserRole) -> Optional[UserRecord]:
        sql = f"UPDATE users SET role = %s, updated_at = now() WHERE id = %s RETURNING {_USER_COLUMNS}"
        return await self._run(self._fetch_one, sql, (role.value, user_id))

    async def delete(self, user_id: str) -> bool:
        return await self._run(self._execute, "DELETE FROM users WHERE id = %s", (user_id,)) > 0

    async def list_users(
        self,
        company_id: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[UserRecord], int]:
        """
        One page of users, newest first, plus the total matching count.

        Every filter left as None is not applied.
        """
        where, params = [], []
        if company_id is not None:
            where.append("company_id = %s")
            params.append(company_id)
        if role is not None:
            where.append("role = %s")
            params.append(role.value)
        if is_active is not None:
            where.append("is_active = %s")
            params.append(is_active)
        if search:
            where.append("(full_name ILIKE %s OR email ILIKE %s)")
            params.extend([f"%{search}%", f"%{search}%"])
        where_sql = f"WHERE {' AND '.join(where)}" if where else ""
        return await self._run(self._fetch_page, where_sql, (tuple(params), offset, limit))

    # --- blocking helpers (thread pool) ---

    def _fetch_one(self, sql: str, params: tuple) -> Optional[UserRecord]:
        with get_conn(self._pool) as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            return _row_to_user(cur.fetchone())

    def _execute(self, sql: str, params: tuple) -> int:
        with get_conn(self._pool) as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.rowcount

    def _fetch_page(self, where_sql: str, params: tuple) -> Tuple[List[UserRecord], int]:
        filters, offset, limit = params
        with get_conn(self._pool) as conn, conn.cursor() as cur:
            cur.execute(f"SELECT count(*) FROM users {where_sql}", filters)
            total = cur.fetchone()[0]
            cur.execute(
                f"SELECT {_USER_COLUMNS} FROM users {where_sql} ORDER BY created_at DESC LIMIT %s OFFSET %s",
                filters + (limit, offset),
            )
            return [_row_to_user(row) for row in cur.fetchall()], int(total)

    async def _run(self, fn, sql: str, params: tuple):
        try:
            return await run_in_threadpool(fn, sql, params)
        except (psycopg2.OperationalError, psycopg2.InterfaceError, PoolError) as exc:
            log_incident("database", exc, operation=fn.__name__)
            raise DependencyUnavailable("database")

# workforce/repositories/company_repo.py
from __future__ import annotations
from typing import Optional, Protocol
import psycopg2
from psycopg2.pool import PoolError, ThreadedConnectionPool
from fastapi.concurrency import run_in_threadpool
from workforce.core.db import get_conn
from workforce.core.errors import DependencyUnavailable
from workforce.core.logger import log_incident
from workforce.domain.models import Company, CompanySettings, Subscription, SubscriptionStatus


class CompanyRepository(Protocol):
    async def get_with_subscription(self, company_id: str) -> Optional[Company]:
        """Company plus its subscription and settings, or None if it does not exist."""
        ...


_COMPANY_SQL = """
    SELECT c.id, c.name, c.registration_code,
           s.plan_id, s.status, s.start_date, s.end_date, s.trial_end,
           cs.lateness_tolerance_minutes, cs.overtime_rate_weekday, cs.overtime_rate_weekend,
           cs.allow_wfh, cs.wfh_clock_in_needs_location,
           (s.company_id IS NOT NULL) AS has_subscription,
           (cs.company_id IS NOT NULL) AS has_settings
    FROM companies c
    LEFT JOIN subscriptions s ON s.company_id = c.id
    LEFT JOIN company_settings cs ON cs.company_id = c.id
    WHERE c.id = %s
"""


class PostgresCompanyRepository:
    def __init__(self, pool: ThreadedConnectionPool):
        self._pool = pool

    async def get_with_subscription(self, company_id: str) -> Optional[Company]:
        try:
            return await run_in_threadpool(self._fetch, company_id)
        except (psycopg2.OperationalError, psycopg2.InterfaceError, PoolError) as exc:
            log_incident("database", exc, operation="get_company")
            raise DependencyUnavailable("database")

    def _fetch(self, company_id: str) -> Optional[Company]:
        with get_conn(self._pool) as conn, conn.cursor() as cur:
            cur.execute(_COMPANY_SQL, (company_id,))
            r = cur.fetchone()
        if not r:
            return None

        subscription = None
        if r[13]:
            subscription = Subscription(
                company_id=str(r[0]),
                plan_id=str(r[3]),
                status=SubscriptionStatus(r[4]),
                start_date=r[5],
                end_date=r[6],
                trial_end=r[7],
            )
        settings = None
        if r[14]:
            settings = CompanySettings(
                lateness_tolerance_minutes=r[8],
                overtime_rate_weekday=float(r[9]),
                overtime_rate_weekend=float(r[10]),
                allow_wfh=bool(r[11]),
                wfh_clock_in_needs_location=bool(r[12]),
            )
        return Company(
            id=str(r[0]),
            name=r[1],
            registration_code=r[2],
            subscription=subscription,
            settings=settings,
        )

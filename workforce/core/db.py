# workforce/core/db.py
from contextlib import contextmanager
from psycopg2.pool import ThreadedConnectionPool
from .config import Settings


def create_pool(settings: Settings) -> ThreadedConnectionPool:
    # Threaded: repositories run their queries from the worker thread pool
    return ThreadedConnectionPool(
        settings.PG_POOL_MIN, settings.PG_POOL_MAX,
        host=settings.PG_HOST,
        port=settings.PG_PORT,
        dbname=settings.PG_DB,
        user=settings.PG_USER,
        password=settings.PG_PASSWORD,
        sslmode=settings.PG_SSLMODE,
    )


@contextmanager
def get_conn(pool: ThreadedConnectionPool):
    conn = pool.getconn()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        pool.putconn(conn)

"""
PostgreSQL Connection Module (v1.0.0)
Pooled access to the application database with dict rows.
"""
import logging
from typing import Optional, Any, List, Sequence
from contextlib import contextmanager

import psycopg2
import psycopg2.extras
from psycopg2.pool import ThreadedConnectionPool

from stylist_ai.config.settings import get_settings

logger = logging.getLogger(__name__)

POOL_MIN_CONN = 1
POOL_MAX_CONN = 10

# Global pool
_pool: Optional[ThreadedConnectionPool] = None


def connect() -> bool:
    """
    Create the connection pool.

    Returns:
        True if connected, False otherwise
    """
    global _pool

    if _pool is not None:
        return True

    dsn = get_settings().database_url
    if not dsn:
        logger.warning("DATABASE_URL not set - database disabled")
        return False

    try:
        logger.info("Connecting to PostgreSQL...")
        _pool = ThreadedConnectionPool(POOL_MIN_CONN, POOL_MAX_CONN, dsn=dsn, connect_timeout=5)
        logger.info("✓ Connected to PostgreSQL")
        return True
    except psycopg2.Error as e:
        logger.warning(f"PostgreSQL connection failed: {e}")
        _pool = None
        return False


@contextmanager
def get_cursor(commit: bool = False):
    """
    Yield a RealDictCursor from the pool and return the connection after.

    Raises:
        RuntimeError: If the database is not configured or unreachable
    """
    if _pool is None and not connect():
        raise RuntimeError("Database unavailable")

    conn = _pool.getconn()
    try:
        with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
            yield cur
        if commit:
            conn.commit()
        else:
            conn.rollback()
    except Exception:
        conn.rollback()
        raise
    finally:
        _pool.putconn(conn)


def fetch_all(query: str, params: Sequence[Any] = ()) -> List[dict]:
    """Run a SELECT and return every row as a dict. Empty list on failure."""
    try:
        with get_cursor() as cur:
            cur.execute(query, params)
            return [dict(row) for row in cur.fetchall()]
    except Exception as e:
        logger.warning(f"Query failed: {e}")
        return []


def fetch_one(query: str, params: Sequence[Any] = ()) -> Optional[dict]:
    """Run a SELECT and return the first row as a dict, or None."""
    try:
        with get_cursor() as cur:
            cur.execute(query, params)
            row = cur.fetchone()
            return dict(row) if row else None
    except Exception as e:
        logger.warning(f"Query failed: {e}")
        return None


def execute(query: str, params: Sequence[Any] = ()) -> bool:
    """Run a write statement. Returns True on commit."""
    try:
        with get_cursor(commit=True) as cur:
            cur.execute(query, params)
        return True
    except Exception as e:
        logger.error(f"Write failed: {e}")
        return False


def health_check() -> dict:
    """Check PostgreSQL connection health."""
    try:
        with get_cursor() as cur:
            cur.execute("SELECT 1")
            cur.fetchone()
        return {"status": "connected"}
    except Exception as e:
        return {"status": "disconnected", "reason": str(e)}


def close():
    """Close every pooled connection."""
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None
        logger.info("PostgreSQL pool closed")

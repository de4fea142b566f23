"""Dependency helpers that expose read/write DB session generators.

These wrappers provide application-friendly names for injection into FastAPI
endpoints: `get_db_write` (default) and `get_db_read` for read-only routes.
`get_read_session_factory` hands the collectors a factory rather than a
session, since each concurrent collector opens its own session.
"""

from .database import get_read_session, get_write_session, ReadSessionLocal


def get_db_write():
    """Yield a write-capable DB session for FastAPI dependency injection."""
    yield from get_write_session()


def get_db_read():
    """Yield a read-only DB session for FastAPI dependency injection."""
    yield from get_read_session()


def get_read_session_factory():
    """Return the read session factory used by the query collectors."""
    return ReadSessionLocal


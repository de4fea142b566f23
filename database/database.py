"""Database helpers: engines, session factories and DB initialization.

Provides read/write session factories and a simple `init_db` helper that
creates tables and seeds the subscription plans when the DB is empty.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from .models import Base, Plan
from core.config import settings

# Read/Write partitioning pattern
# In production, set WRITE_DATABASE_URL and READ_DATABASE_URL to different DB instances.
# For SQLite/demo this defaults to the same file but the interfaces are separated.
WRITE_DATABASE_URL = settings.write_database_url
READ_DATABASE_URL = settings.read_database_url

DEFAULT_PLANS = [
    {"nome_plano": "Individual", "max_dependentes": 0},
    {"nome_plano": "Família", "max_dependentes": 3},
    {"nome_plano": "Gestor", "max_dependentes": None},
]


def _connect_args(url: str) -> dict:
    # sqlite connections are shared with the collector worker threads
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


# Engines
write_engine = create_engine(WRITE_DATABASE_URL, connect_args=_connect_args(WRITE_DATABASE_URL))
read_engine = create_engine(READ_DATABASE_URL, connect_args=_connect_args(READ_DATABASE_URL))

# Session factories
WriteSessionLocal = sessionmaker(bind=write_engine)
ReadSessionLocal = sessionmaker(bind=read_engine)


def init_db():
    """Initialize database schema and seed plans.

    Creates all tables using SQLAlchemy models and populates the plans
    table with the default plans if the table is empty.
    """
    Base.metadata.create_all(bind=write_engine)
    session = WriteSessionLocal()
    try:
        if session.query(Plan).count() == 0:
            for item in DEFAULT_PLANS:
                session.add(Plan(nome_plano=item["nome_plano"], max_dependentes=item["max_dependentes"]))
            session.commit()
    finally:
        session.close()


# Convenience generators for dependency injection
def get_write_session():
    """Yield a write-enabled SQLAlchemy session for the request scope.

    Use this generator as a FastAPI dependency to ensure the session is
    properly closed after the request completes.
    """
    db = WriteSessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_read_session():
    """Yield a read-only SQLAlchemy session for the request scope.

    Used for read endpoints where routing reads to a replica may be desired.
    """
    db = ReadSessionLocal()
    try:
        yield db
    finally:
        db.close()

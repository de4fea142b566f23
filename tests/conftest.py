"""Shared fixtures: a throwaway SQLite database and one seeded user per role.

The environment is configured before any application module is imported,
since settings and engines are created at import time.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="ethra-tests-")
os.environ["WRITE_DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'ethra_test.db')}"
os.environ.pop("READ_DATABASE_URL", None)
os.environ["ETHRA_LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["ETHRA_TIMEZONE"] = "America/Sao_Paulo"
os.environ["ETHRA_RETRY_BASE_DELAY"] = "0"
os.environ["OPENAI_API_KEY"] = ""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from core.config import settings
from core.dates import local_today
from core.retry import RetryPolicy
from database import init_db, models
from database.database import ReadSessionLocal, WriteSessionLocal, write_engine
from database.models import Base, UserRole
from services.collectors import QueryCollector


@pytest.fixture(autouse=True)
def fresh_db():
    """Recreate the schema (and seeded plans) for every test."""
    Base.metadata.drop_all(bind=write_engine)
    init_db()
    yield


@pytest.fixture
def db():
    session = WriteSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _plan_id(session, name):
    return session.query(models.Plan).filter(models.Plan.nome_plano == name).one().id


@pytest.fixture
def users(db):
    """One user per role plus a linked dependent; returned as plain ids."""
    family = _plan_id(db, "Família")
    gestor = models.User(nome_completo="Gestor", email="gestor@ethra.test", tipo_usuario=UserRole.GESTOR, plano_id=family)
    socio = models.User(nome_completo="Socio", email="socio@ethra.test", tipo_usuario=UserRole.SOCIO)
    cliente = models.User(nome_completo="Cliente", email="cliente@ethra.test", tipo_usuario=UserRole.CLIENTE, peso_atual_kg=80.0)
    outro = models.User(nome_completo="Outro Cliente", email="outro@ethra.test", tipo_usuario=UserRole.CLIENTE)
    dependente = models.User(nome_completo="Dependente", email="dep@ethra.test", tipo_usuario=UserRole.DEPENDENTE, plano_id=family)
    db.add_all([gestor, socio, cliente, outro, dependente])
    db.flush()
    db.add(models.UserLink(usuario_id=dependente.id, usuario_principal_id=gestor.id, tipo_vinculo="dependente", ativo=True))
    db.commit()
    return SimpleNamespace(
        gestor=gestor.id,
        socio=socio.id,
        cliente=cliente.id,
        outro=outro.id,
        dependente=dependente.id,
    )


@pytest.fixture
def no_sleep():
    calls = []
    return calls, calls.append


@pytest.fixture
def collector(no_sleep):
    _, sleep = no_sleep
    return QueryCollector(ReadSessionLocal, retry_policy=RetryPolicy(max_attempts=1, sleep=sleep))


def local_noon_utc(days_ago: int = 0, tz=None) -> datetime:
    """Naive UTC timestamp for 12:00 local time `days_ago` local days back."""
    zone = tz or settings.timezone
    day = local_today(zone) - timedelta(days=days_ago)
    local = datetime(day.year, day.month, day.day, 12, 0, tzinfo=zone)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


@pytest.fixture
def noon():
    return local_noon_utc

"""Tests for the per-domain query collectors."""
import asyncio

from core.dates import last_n_days, utcnow
from core.retry import RetryPolicy
from database import models
from services.collectors import Domain, QueryCollector


def _seed(db, user_id, noon):
    db.add_all([
        models.NutritionEntry(usuario_id=user_id, data_registro=noon(1), calorias=500, proteinas=30),
        models.NutritionEntry(usuario_id=user_id, data_registro=noon(0), calorias=700, proteinas=40),
        models.NutritionEntry(usuario_id=user_id, data_registro=noon(0), calorias=999, deletado_em=utcnow()),
        models.NutritionEntry(usuario_id=user_id, data_registro=noon(40), calorias=400),
        models.WeightEntry(usuario_id=user_id, data_registro=noon(2), peso_kg=81.0),
        models.HydrationEntry(usuario_id=user_id, horario=noon(0), quantidade_ml=300),
    ])
    db.commit()


def test_fetch_returns_live_rows_in_window_oldest_first(db, users, collector, noon):
    _seed(db, users.cliente, noon)
    rows = collector.fetch(Domain.NUTRITION, users.cliente, last_n_days(7))

    assert [row["calorias"] for row in rows] == [500, 700]
    assert all(row["deletado_em"] is None for row in rows)
    assert rows[0]["data_registro"] < rows[1]["data_registro"]


def test_fetch_is_scoped_to_the_user(db, users, collector, noon):
    _seed(db, users.cliente, noon)
    assert collector.fetch(Domain.NUTRITION, users.outro, last_n_days(7)) == []


def test_fetch_many_collects_every_domain(db, users, collector, noon):
    _seed(db, users.cliente, noon)
    window = last_n_days(7)
    rows = asyncio.run(collector.fetch_many(users.cliente, {domain: window for domain in Domain}))

    assert len(rows[Domain.NUTRITION]) == 2
    assert [row["peso_kg"] for row in rows[Domain.WEIGHT]] == [81.0]
    assert [row["quantidade_ml"] for row in rows[Domain.HYDRATION]] == [300]


def test_failing_domain_yields_empty_list_without_blocking_others(db, users, noon, no_sleep, monkeypatch):
    _seed(db, users.cliente, noon)
    delays, sleep = no_sleep
    from database.database import ReadSessionLocal

    collector = QueryCollector(ReadSessionLocal, retry_policy=RetryPolicy(max_attempts=2, base_delay=0.5, sleep=sleep))
    original = collector._query

    def broken_for_weight(spec, user_id, date_range):
        if spec.model is models.WeightEntry:
            raise RuntimeError("replica unavailable")
        return original(spec, user_id, date_range)

    monkeypatch.setattr(collector, "_query", broken_for_weight)
    window = last_n_days(7)
    rows = asyncio.run(collector.fetch_many(users.cliente, {domain: window for domain in Domain}))

    assert rows[Domain.WEIGHT] == []
    assert len(rows[Domain.NUTRITION]) == 2
    assert len(rows[Domain.HYDRATION]) == 1
    assert delays == [0.5]

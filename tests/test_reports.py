"""Tests for report generation and lifecycle."""
import asyncio
from datetime import timedelta

import httpx
import pytest

from core.dates import DateRange, local_today
from core.exceptions import NotFoundError, ValidationError
from core.retry import RetryPolicy
from database import models
from database.models import ReportStatus
from services import reports
from services.collectors import Domain
from services.insight_client import InsightClient
from services.reports import ReportService, compare_periods


class StubInsightClient(InsightClient):
    """Insight client that answers without any network call."""

    def __init__(self, answer="Narrativa de teste"):
        super().__init__(api_key="stub")
        self.answer = answer
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        return self.answer


def _window(days_back_start, days_back_end):
    today = local_today()
    return DateRange(today - timedelta(days=days_back_start), today - timedelta(days=days_back_end))


def _seed_two_weeks(db, user_id, noon):
    # current week: days 0..6, previous week: days 7..13
    db.add_all([
        models.NutritionEntry(usuario_id=user_id, data_registro=noon(1), calorias=2000, proteinas=100),
        models.NutritionEntry(usuario_id=user_id, data_registro=noon(3), calorias=1000, proteinas=60),
        models.NutritionEntry(usuario_id=user_id, data_registro=noon(8), calorias=1200, proteinas=80),
        models.WeightEntry(usuario_id=user_id, data_registro=noon(2), peso_kg=79.5),
        models.HydrationEntry(usuario_id=user_id, horario=noon(2), quantidade_ml=400),
    ])
    db.commit()


def test_generate_builds_payload_and_comparison(db, users, collector, noon):
    _seed_two_weeks(db, users.cliente, noon)
    client = StubInsightClient()
    service = ReportService(collector, client)

    report = asyncio.run(service.generate(db, users.cliente, "completo", _window(6, 0)))

    payload = report.dados_nutricionais
    assert report.status_envio == ReportStatus.PENDENTE
    assert report.insights == "Narrativa de teste"
    assert len(payload["diarios"]) == 7
    assert payload["total"]["calorias"] == 3000
    assert payload["media"]["calorias"] == 1500
    assert payload["peso"][0]["peso_kg"] == 79.5
    assert isinstance(payload["peso"][0]["data_registro"], str)
    assert payload["hidratacao"][0]["quantidade_ml"] == 400

    comparison = report.comparacao_semanal
    assert comparison["calorias"]["anterior"] == 1200
    assert comparison["calorias"]["atual"] == 1500
    assert comparison["calorias"]["percentual"] == 25.0
    assert "1500" in client.prompts[0]


def test_comparison_is_absent_without_previous_rows(db, users, collector, noon):
    db.add(models.NutritionEntry(usuario_id=users.cliente, data_registro=noon(0), calorias=1800))
    db.commit()
    service = ReportService(collector, StubInsightClient(answer=None))

    report = asyncio.run(service.generate(db, users.cliente, "nutricional", _window(6, 0)))

    assert report.comparacao_semanal is None
    assert report.insights is None
    assert report.dados_nutricionais["peso"] == []
    assert report.dados_nutricionais["hidratacao"] == []


def test_report_type_limits_collected_domains(db, users, collector, noon):
    _seed_two_weeks(db, users.cliente, noon)
    service = ReportService(collector, StubInsightClient())

    report = asyncio.run(service.generate(db, users.cliente, "hidratacao", _window(6, 0)))

    assert report.dados_nutricionais["diarios"] == []
    assert report.dados_nutricionais["peso"] == []
    assert len(report.dados_nutricionais["hidratacao"]) == 1


def test_weight_report_skips_nutrition_comparison_and_prompt(db, users, collector, noon, monkeypatch):
    _seed_two_weeks(db, users.cliente, noon)
    client = StubInsightClient()
    service = ReportService(collector, client)
    fetched = []
    original_fetch = collector.fetch

    def recording_fetch(domain, user_id, date_range):
        fetched.append(domain)
        return original_fetch(domain, user_id, date_range)

    monkeypatch.setattr(collector, "fetch", recording_fetch)

    report = asyncio.run(service.generate(db, users.cliente, "peso", _window(6, 0)))

    assert fetched == [Domain.WEIGHT]
    assert report.comparacao_semanal is None
    assert "Calorias" not in client.prompts[0]
    assert "Registros de peso: 1" in client.prompts[0]


def test_malformed_narrative_response_still_saves_report(db, users, collector, noon, no_sleep):
    _seed_two_weeks(db, users.cliente, noon)
    _, sleep = no_sleep
    client = InsightClient(
        api_key="test-key",
        base_url="https://llm.test/v1",
        retry_policy=RetryPolicy(max_attempts=1, sleep=sleep),
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=["unexpected"])),
    )

    report = asyncio.run(ReportService(collector, client).generate(db, users.cliente, "completo", _window(6, 0)))

    assert report.id is not None
    assert report.insights is None
    assert report.dados_nutricionais["total"]["calorias"] == 3000


def test_unknown_report_type_is_rejected(db, users, collector):
    service = ReportService(collector, StubInsightClient())
    with pytest.raises(ValidationError):
        asyncio.run(service.generate(db, users.cliente, "semanal", _window(6, 0)))


def test_compare_periods_handles_zero_previous_average():
    comparison = compare_periods({"calorias": 0.0, "proteinas": 50.0}, {"calorias": 1200.0, "proteinas": 75.0})
    assert comparison["calorias"]["percentual"] is None
    assert comparison["proteinas"]["percentual"] == 50.0


def test_status_update_and_listing(db, users, collector, noon):
    _seed_two_weeks(db, users.cliente, noon)
    service = ReportService(collector, StubInsightClient())
    first = asyncio.run(service.generate(db, users.cliente, "completo", _window(13, 7)))
    second = asyncio.run(service.generate(db, users.cliente, "completo", _window(6, 0)))

    listed = reports.list_reports(db, users.cliente)
    assert [r.id for r in listed] == [second.id, first.id]

    sent = reports.update_status(db, first, ReportStatus.ENVIADO)
    assert sent.status_envio == ReportStatus.ENVIADO
    assert sent.enviado_em is not None
    assert [r.id for r in reports.list_reports(db, users.cliente, status="pendente")] == [second.id]

    reports.delete_report(db, second)
    with pytest.raises(NotFoundError):
        reports.get_report(db, second.id)

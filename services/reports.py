"""On-demand report generation and report lifecycle.

A report is a frozen snapshot of one user's data over a date range: the
gap-filled daily nutrition aggregates with their totals and averages, the
raw weight and hydration rows, an optional narrative from the text
generation service and an optional comparison with the previous window of
equal length. After creation only the delivery status may change.
"""

import asyncio
from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from core.dates import DateRange, utcnow
from core.exceptions import NotFoundError, ValidationError
from core.logger import get_logger
from core.repository import save
from database import models
from database.models import ReportStatus, ReportType
from services.aggregator import aggregate_domain, averages, totals
from services.collectors import Domain, NUTRITION_FIELDS, QueryCollector
from services.insight_client import InsightClient, build_prompt

logger = get_logger("services.reports")

DOMAINS_BY_TYPE = {
    ReportType.COMPLETO: (Domain.NUTRITION, Domain.WEIGHT, Domain.HYDRATION),
    ReportType.NUTRICIONAL: (Domain.NUTRITION,),
    ReportType.PESO: (Domain.WEIGHT,),
    ReportType.HIDRATACAO: (Domain.HYDRATION,),
}

COMPARED_FIELDS = ("calorias", "proteinas")


def _serialize_row(row: dict) -> dict:
    out = {}
    for key, value in row.items():
        if key == "deletado_em":
            continue
        out[key] = value.isoformat() if isinstance(value, (datetime, date)) else value
    return out


def _round_values(values: Dict[str, float], digits: int = 2) -> Dict[str, float]:
    return {key: round(value, digits) for key, value in values.items()}


def compare_periods(previous: Dict[str, float], current: Dict[str, float]) -> dict:
    """Previous vs current averages with the relative change in percent.

    `percentual` is None when the previous average is zero.
    """
    comparison = {}
    for name in COMPARED_FIELDS:
        before = previous.get(name, 0.0)
        after = current.get(name, 0.0)
        comparison[name] = {
            "anterior": round(before, 2),
            "atual": round(after, 2),
            "percentual": round((after - before) / before * 100, 2) if before else None,
        }
    return comparison


class ReportService:
    """Builds and persists report snapshots.

    Attributes:
        collector: Query collector used for every read.
        insight_client: Narrative generator; may be disabled.
    """

    def __init__(self, collector: QueryCollector, insight_client: InsightClient):
        self.collector = collector
        self.insight_client = insight_client

    @property
    def tz(self):
        return self.collector.tz

    def build_payload(self, rows: Dict[Domain, List[dict]], date_range: DateRange) -> dict:
        """Shape collected rows into the persisted `dados_nutricionais` payload."""
        nutrition_rows = rows.get(Domain.NUTRITION)
        daily = aggregate_domain(Domain.NUTRITION, nutrition_rows, date_range, self.tz) if nutrition_rows is not None else []
        return {
            "diarios": daily,
            "total": _round_values(totals(daily, NUTRITION_FIELDS)),
            "media": _round_values(averages(daily, NUTRITION_FIELDS)),
            "peso": [_serialize_row(row) for row in rows.get(Domain.WEIGHT, [])],
            "hidratacao": [_serialize_row(row) for row in rows.get(Domain.HYDRATION, [])],
        }

    def previous_period_comparison(self, user_id: int, date_range: DateRange, current_media: dict) -> Optional[dict]:
        """Compare against the window of equal length before `date_range`."""
        previous = date_range.previous()
        rows = self.collector.fetch(Domain.NUTRITION, user_id, previous)
        if not rows:
            return None
        daily = aggregate_domain(Domain.NUTRITION, rows, previous, self.tz)
        return compare_periods(averages(daily, NUTRITION_FIELDS), current_media)

    async def generate(self, db: Session, user_id: int, tipo, date_range: DateRange) -> models.Report:
        """Collect, aggregate, annotate and persist a new report.

        Args:
            db: Write session used to persist the report.
            user_id: Owner of the data (already authorized by the caller).
            tipo: `ReportType` or its value.
            date_range: Inclusive local-day window.

        Returns:
            The persisted `Report` with status `pendente`.
        """
        try:
            report_type = ReportType(tipo)
        except ValueError:
            raise ValidationError(f"Invalid report type {tipo!r}", field="tipo")

        logger.info(
            "Generating %s report for user=%s from %s to %s",
            report_type.value, user_id, date_range.start, date_range.end,
        )
        domains = DOMAINS_BY_TYPE[report_type]
        rows = await self.collector.fetch_many(user_id, {domain: date_range for domain in domains})
        payload = self.build_payload(rows, date_range)

        prompt = build_prompt(
            date_range.start.isoformat(),
            date_range.end.isoformat(),
            payload["media"] if Domain.NUTRITION in domains else None,
            len(payload["peso"]) if Domain.WEIGHT in domains else None,
            len(payload["hidratacao"]) if Domain.HYDRATION in domains else None,
        )
        narrative = asyncio.to_thread(self.insight_client.generate, prompt)
        if Domain.NUTRITION in domains:
            insights, comparison = await asyncio.gather(
                narrative,
                asyncio.to_thread(self.previous_period_comparison, user_id, date_range, payload["media"]),
            )
        else:
            insights, comparison = await narrative, None

        report = models.Report(
            usuario_id=user_id,
            tipo=report_type.value,
            data_inicio=date_range.start,
            data_fim=date_range.end,
            dados_nutricionais=payload,
            insights=insights,
            comparacao_semanal=comparison,
            status_envio=ReportStatus.PENDENTE,
            criado_em=utcnow(),
        )
        report = save(db, report)
        logger.info("Report generated successfully: %s", report.id)
        return report


def list_reports(
    db: Session,
    user_id: int,
    status: Optional[ReportStatus] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    limit: int = 50,
    skip: int = 0,
) -> List[models.Report]:
    """A user's reports, newest first, optionally filtered."""
    query = db.query(models.Report).filter(models.Report.usuario_id == user_id)
    if status is not None:
        query = query.filter(models.Report.status_envio == ReportStatus(status))
    if start is not None:
        query = query.filter(models.Report.data_inicio >= start)
    if end is not None:
        query = query.filter(models.Report.data_fim <= end)
    return (
        query.order_by(models.Report.criado_em.desc(), models.Report.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_report(db: Session, report_id: int) -> models.Report:
    report = db.get(models.Report, report_id)
    if report is None:
        raise NotFoundError("Report", report_id)
    return report


def update_status(db: Session, report: models.Report, status) -> models.Report:
    """Change the delivery status; `enviado` stamps the sent time."""
    new_status = ReportStatus(status)
    report.status_envio = new_status
    if new_status == ReportStatus.ENVIADO:
        report.enviado_em = utcnow()
    db.commit()
    db.refresh(report)
    logger.info("Report %s marked as %s", report.id, new_status.value)
    return report


def delete_report(db: Session, report: models.Report) -> None:
    db.delete(report)
    db.commit()
    logger.info("Report %s deleted", report.id)

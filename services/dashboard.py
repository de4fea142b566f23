"""Dashboard assembly.

Fetches the three domains concurrently through the query collector,
aggregates them into gap-filled daily series, computes the summary card
numbers and layers the derived metrics on top.
"""

import asyncio
from typing import Dict, Optional

from sqlalchemy.orm import Session

from core.config import settings
from core.dates import DateRange, last_n_days, local_date, local_today
from core.exceptions import DashboardTimeoutError, ValidationError
from core.logger import get_logger
from services.aggregator import aggregate_domain, entry_count
from services.collectors import DOMAINS, Domain, QueryCollector
from services.derived_metrics import derive
from services.goals import GoalValues, get_goals, goal_resolver

logger = get_logger("services.dashboard")

NUTRITION_PERIODS = {"7d": 7, "30d": 30}
WEIGHT_PERIODS = {"7d": 7, "30d": 30, "90d": 90}
HYDRATION_DAYS = 7
SUMMARY_DAYS = 30


def _period_days(period: str, allowed: Dict[str, int], field: str) -> int:
    try:
        return allowed[period]
    except KeyError:
        raise ValidationError(
            f"Invalid period {period!r}; expected one of {', '.join(allowed)}", field=field
        )


class DashboardService:
    """Builds dashboard payloads for one viewed user at a time.

    Attributes:
        collector: Query collector used for every read.
        timeout: Seconds the summary may take before the request fails.
    """

    def __init__(self, collector: QueryCollector, timeout: Optional[float] = None):
        self.collector = collector
        self.timeout = settings.dashboard_timeout if timeout is None else timeout

    @property
    def tz(self):
        return self.collector.tz

    def _today_total(self, domain: Domain, rows, field: str) -> float:
        today = local_today(self.tz)
        timestamp_key = DOMAINS[domain].timestamp_field
        return sum(
            float(row.get(field) or 0)
            for row in rows
            if local_date(row[timestamp_key], self.tz) == today
        )

    async def _collect_summary(self, user_id: int, goals: GoalValues, fallback_weight: Optional[float]) -> dict:
        window = last_n_days(SUMMARY_DAYS, self.tz)
        rows = await self.collector.fetch_many(
            user_id, {domain: window for domain in Domain}
        )
        weights = [float(row["peso_kg"]) for row in rows[Domain.WEIGHT] if row.get("peso_kg") is not None]

        peso_atual = weights[-1] if weights else fallback_weight
        ultimo_peso = weights[-2] if len(weights) >= 2 else None

        return {
            "peso_atual": peso_atual,
            "ultimo_peso": ultimo_peso,
            "meta_peso": goals.peso_objetivo,
            "meta_calorias": goals.calorias_diarias,
            "meta_agua": goals.agua_diaria_ml,
            "calorias_hoje": self._today_total(Domain.NUTRITION, rows[Domain.NUTRITION], "calorias"),
            "agua_hoje": self._today_total(Domain.HYDRATION, rows[Domain.HYDRATION], "quantidade_ml"),
            "registros_peso_30_dias": len(rows[Domain.WEIGHT]),
            "registros_nutricao_30_dias": len(rows[Domain.NUTRITION]),
            "registros_agua_30_dias": len(rows[Domain.HYDRATION]),
        }

    async def summary(self, db: Session, user) -> dict:
        """Summary card numbers for `user`, raced against the timeout.

        Raises:
            DashboardTimeoutError: If the collection does not finish in time.
        """
        goals = get_goals(db, user.id)
        try:
            return await asyncio.wait_for(
                self._collect_summary(user.id, goals, user.peso_atual_kg), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error("Dashboard summary for user=%s exceeded %ss", user.id, self.timeout)
            raise DashboardTimeoutError(self.timeout)

    async def dashboard(
        self,
        db: Session,
        user,
        nutrition_period: str = "7d",
        weight_period: str = "30d",
        insight_limit: Optional[int] = None,
    ) -> dict:
        """Full dashboard payload: summary, daily series and derived metrics."""
        windows = {
            Domain.NUTRITION: last_n_days(_period_days(nutrition_period, NUTRITION_PERIODS, "nutrition_period"), self.tz),
            Domain.WEIGHT: last_n_days(_period_days(weight_period, WEIGHT_PERIODS, "weight_period"), self.tz),
            Domain.HYDRATION: last_n_days(HYDRATION_DAYS, self.tz),
        }

        summary_task = asyncio.ensure_future(self.summary(db, user))
        rows = await self.collector.fetch_many(user.id, windows)
        summary = await summary_task

        aggregates = {
            domain: aggregate_domain(domain, rows[domain], windows[domain], self.tz)
            for domain in Domain
        }
        goals = get_goals(db, user.id)
        derived = derive(aggregates, goals, summary, limit=insight_limit)
        logger.info(
            "Dashboard built for user=%s (%s nutrition, %s weight, %s hydration entries)",
            user.id,
            entry_count(aggregates[Domain.NUTRITION]),
            entry_count(aggregates[Domain.WEIGHT]),
            entry_count(aggregates[Domain.HYDRATION]),
        )

        return {
            "usuario_id": user.id,
            "periodos": {
                "nutricao": _window_dict(windows[Domain.NUTRITION]),
                "peso": _window_dict(windows[Domain.WEIGHT]),
                "hidratacao": _window_dict(windows[Domain.HYDRATION]),
            },
            "resumo": summary,
            "metas": goals.as_dict(),
            "macros_alvo": goal_resolver.macro_targets(goals.calorias_diarias),
            "nutricao": aggregates[Domain.NUTRITION],
            "peso": aggregates[Domain.WEIGHT],
            "hidratacao": aggregates[Domain.HYDRATION],
            "metricas": derived.as_dict(),
        }


def _window_dict(window: DateRange) -> dict:
    return {"inicio": window.start.isoformat(), "fim": window.end.isoformat()}

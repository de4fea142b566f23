"""Query collectors: one filtered read per data domain.

Each fetch selects a single user's live (not soft-deleted) rows inside a
local-day window, ordered by timestamp ascending, and returns them as plain
dicts. A failing query is retried through the collector's `RetryPolicy`;
when the policy gives up the failure is logged and an empty list is
returned, so one broken domain never blocks the others.
"""

import asyncio
import enum
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Type
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from core.config import settings
from core.dates import DateRange, utc_bounds
from core.logger import get_logger
from core.retry import RetryPolicy
from database.models import Base, HydrationEntry, NutritionEntry, WeightEntry

logger = get_logger("services.collectors")


class Domain(str, enum.Enum):
    NUTRITION = "nutricao"
    WEIGHT = "peso"
    HYDRATION = "hidratacao"


@dataclass(frozen=True)
class DomainSpec:
    """How a domain's table is read: model, timestamp column, numeric fields."""

    model: Type[Base]
    timestamp_field: str
    fields: Tuple[str, ...]
    extra_fields: Tuple[str, ...] = ()


NUTRITION_FIELDS = ("calorias", "proteinas", "carboidratos", "gorduras")
WEIGHT_FIELDS = ("peso_kg",)
HYDRATION_FIELDS = ("quantidade_ml",)

DOMAINS: Dict[Domain, DomainSpec] = {
    Domain.NUTRITION: DomainSpec(NutritionEntry, "data_registro", NUTRITION_FIELDS, ("descricao_ia",)),
    Domain.WEIGHT: DomainSpec(WeightEntry, "data_registro", WEIGHT_FIELDS, ("observacoes",)),
    Domain.HYDRATION: DomainSpec(HydrationEntry, "horario", HYDRATION_FIELDS, ("tipo_liquido",)),
}


def row_to_dict(obj, spec: DomainSpec) -> dict:
    """Flatten an ORM entry into the raw-row shape the aggregators consume."""
    row = {"id": obj.id, spec.timestamp_field: getattr(obj, spec.timestamp_field)}
    for name in spec.fields + spec.extra_fields:
        row[name] = getattr(obj, name)
    row["deletado_em"] = obj.deletado_em
    return row


class QueryCollector:
    """Fetch raw rows for a user and date range, one domain at a time.

    Attributes:
        session_factory: Callable returning a new SQLAlchemy session.
        retry_policy: Policy applied to every query.
        tz: Timezone that defines the local days of a window.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        retry_policy: Optional[RetryPolicy] = None,
        tz: Optional[ZoneInfo] = None,
    ):
        self.session_factory = session_factory
        self.retry_policy = retry_policy or RetryPolicy(settings.retry_attempts, settings.retry_base_delay)
        self.tz = tz or settings.timezone

    def _query(self, spec: DomainSpec, user_id: int, date_range: DateRange) -> List[dict]:
        start, end = utc_bounds(date_range, self.tz)
        timestamp = getattr(spec.model, spec.timestamp_field)
        session = self.session_factory()
        try:
            rows = (
                session.query(spec.model)
                .filter(spec.model.usuario_id == user_id)
                .filter(spec.model.deletado_em.is_(None))
                .filter(timestamp >= start, timestamp < end)
                .order_by(timestamp.asc(), spec.model.id.asc())
                .all()
            )
            return [row_to_dict(obj, spec) for obj in rows]
        finally:
            session.close()

    def fetch(self, domain: Domain, user_id: int, date_range: DateRange) -> List[dict]:
        """Return live rows for one domain; never raises on query failure."""
        spec = DOMAINS[Domain(domain)]
        try:
            rows = self.retry_policy.call(self._query, spec, user_id, date_range)
        except Exception as exc:
            logger.warning(
                "Collector %s failed for user=%s %s..%s: %s",
                Domain(domain).value,
                user_id,
                date_range.start,
                date_range.end,
                exc,
            )
            return []
        logger.debug("Collector %s returned %s rows for user=%s", Domain(domain).value, len(rows), user_id)
        return rows

    async def fetch_many(self, user_id: int, windows: Dict[Domain, DateRange]) -> Dict[Domain, List[dict]]:
        """Fetch several domains concurrently; each settles independently.

        Every domain runs in its own worker thread with its own session and
        writes only to its own result slot.
        """
        domains = list(windows)
        results = await asyncio.gather(
            *(asyncio.to_thread(self.fetch, domain, user_id, windows[domain]) for domain in domains)
        )
        return dict(zip(domains, results))

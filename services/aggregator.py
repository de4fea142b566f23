"""Daily aggregation of raw entry rows.

`aggregate` groups rows by local calendar day and produces exactly one
entry per day of the window, zero-filled where nothing was logged, so
charts always get a contiguous timeline. Two meals of 500 and 300 kcal on
Jan 1st and one of 1000 kcal on Jan 3rd aggregate over Jan 1-3 to
800 / 0 / 1000.

Aggregation is a pure function of its inputs. Soft-deleted rows and rows
outside the window are skipped even if a caller passes them in.
"""

import math
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence
from zoneinfo import ZoneInfo

from core.dates import DateRange, as_utc, day_keys, local_date
from core.logger import get_logger
from services.collectors import DOMAINS, Domain, NUTRITION_FIELDS

logger = get_logger("services.aggregator")

SUM = "sum"
LAST = "last"

# Weight samples are not additive: the day's value is its latest sample.
REDUCER_BY_DOMAIN = {
    Domain.NUTRITION: SUM,
    Domain.WEIGHT: LAST,
    Domain.HYDRATION: SUM,
}


def _number(value) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _empty_day(day: date, fields: Sequence[str]) -> dict:
    entry = {"data": day.isoformat()}
    for name in fields:
        entry[name] = 0.0
    entry["registros"] = 0
    return entry


def aggregate(
    rows: Iterable[dict],
    window_start: date,
    window_end: date,
    fields: Sequence[str] = NUTRITION_FIELDS,
    timestamp_key: str = "data_registro",
    tz: Optional[ZoneInfo] = None,
    reducer: str = SUM,
) -> List[dict]:
    """Group rows into one entry per local day of `[window_start, window_end]`.

    Args:
        rows: Raw rows (dicts) carrying `timestamp_key` and numeric `fields`.
        window_start: First day of the window (inclusive).
        window_end: Last day of the window (inclusive).
        fields: Numeric fields to reduce per day.
        timestamp_key: Key holding the row timestamp.
        tz: Timezone used to find a row's local day.
        reducer: `"sum"` adds the day's values; `"last"` keeps the latest sample.

    Returns:
        One dict per day, ascending, with `data` (ISO date), each field and
        `registros` (number of rows that day).
    """
    if reducer not in (SUM, LAST):
        raise ValueError(f"Unknown reducer {reducer!r}")

    days = day_keys(window_start, window_end)
    groups: Dict[date, dict] = {day: _empty_day(day, fields) for day in days}
    latest: Dict[date, datetime] = {}

    for row in rows:
        if row.get("deletado_em") is not None:
            continue
        stamp = row.get(timestamp_key)
        if stamp is None:
            continue
        try:
            day = local_date(stamp, tz)
        except ValueError:
            logger.warning("Skipping row with unparseable %s=%r", timestamp_key, stamp)
            continue
        group = groups.get(day)
        if group is None:
            continue

        group["registros"] += 1
        if reducer == SUM:
            for name in fields:
                group[name] += _number(row.get(name))
        else:
            stamp_key = as_utc(stamp)
            previous = latest.get(day)
            if previous is None or stamp_key is None or stamp_key >= previous:
                if stamp_key is not None:
                    latest[day] = stamp_key
                for name in fields:
                    group[name] = _number(row.get(name))

    return [groups[day] for day in days]


def aggregate_domain(
    domain: Domain,
    rows: Iterable[dict],
    date_range: DateRange,
    tz: Optional[ZoneInfo] = None,
) -> List[dict]:
    """`aggregate` with the fields, timestamp key and reducer of a domain."""
    domain = Domain(domain)
    spec = DOMAINS[domain]
    return aggregate(
        rows,
        date_range.start,
        date_range.end,
        fields=spec.fields,
        timestamp_key=spec.timestamp_field,
        tz=tz,
        reducer=REDUCER_BY_DOMAIN[domain],
    )


def logged_days(aggregates: Iterable[dict]) -> List[dict]:
    """Only the days that had at least one entry."""
    return [day for day in aggregates if _number(day.get("registros")) > 0]


def totals(aggregates: Iterable[dict], fields: Sequence[str] = NUTRITION_FIELDS) -> Dict[str, float]:
    result = {name: 0.0 for name in fields}
    for day in aggregates:
        for name in fields:
            result[name] += _number(day.get(name))
    return result


def averages(aggregates: Iterable[dict], fields: Sequence[str] = NUTRITION_FIELDS) -> Dict[str, float]:
    """Per-day averages over the days that had entries.

    Zero-filled days are excluded so that an unlogged day does not read as a
    day of fasting; with no logged days every average is zero.
    """
    days = logged_days(aggregates)
    summed = totals(days, fields)
    count = len(days) or 1
    return {name: summed[name] / count for name in fields}


def entry_count(aggregates: Iterable[dict]) -> int:
    return sum(int(_number(day.get("registros"))) for day in aggregates)

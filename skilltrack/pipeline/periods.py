from __future__ import annotations

import math
from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Mapping

import pandas as pd
import structlog
from dateutil import tz
from dateutil.relativedelta import relativedelta

from ..config import settings
from ..utils import ensure_utc, epoch_ms, now_utc, parse_timestamp, start_of_local_day
from .constants import ROLLING_PERIOD_DAYS
from .snapshots import Entity, Snapshot, coerce_roster, snapshots_for, sort_snapshots

log = structlog.get_logger()


class Period(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class Metric(str, Enum):
    EXPERIENCE = "experience"
    LEVEL = "level"


@dataclass(frozen=True)
class PeriodWindow:
    start: datetime
    end: datetime | None = None

    def contains(self, ts: datetime) -> bool:
        if ts < self.start:
            return False
        return self.end is None or ts <= self.end


@dataclass
class EntityDelta:
    entity: Entity
    total: int = 0
    per_category: dict[str, int] = field(default_factory=dict)

    @property
    def breakdown_total(self) -> int:
        return sum(self.per_category.values())

    def to_dict(self) -> dict:
        return {
            "entity": {"id": self.entity.id, "name": self.entity.name},
            "total": self.total,
            "per_category": dict(self.per_category),
            "breakdown_total": self.breakdown_total,
        }


def _as_period(period) -> Period:
    if isinstance(period, Period):
        return period
    try:
        return Period(str(period).lower())
    except ValueError:
        raise ValueError("period must be daily|weekly|monthly|yearly|custom")


def _as_metric(metric) -> Metric:
    if isinstance(metric, Metric):
        return metric
    try:
        return Metric(str(metric).lower())
    except ValueError:
        raise ValueError("metric must be experience|level")


def _split_range(custom_range) -> tuple:
    if not custom_range:
        return None, None
    if isinstance(custom_range, Mapping):
        return custom_range.get("start"), custom_range.get("end")
    values = list(custom_range) + [None, None]
    return values[0], values[1]


def start_of_day(now: datetime | None = None, tz_name: str | None = None) -> datetime:
    return start_of_local_day(now or now_utc(), tz_name or settings.reference_tz)


def resolve_window(
    period,
    now: datetime | None = None,
    custom_start=None,
    custom_end=None,
    tz_name: str | None = None,
) -> PeriodWindow:
    period = _as_period(period)
    now = ensure_utc(now) if now else now_utc()
    if period == Period.CUSTOM:
        start = parse_timestamp(custom_start)
        end = parse_timestamp(custom_end)
        if start is not None:
            if end is not None and end < start:
                start, end = end, start
            return PeriodWindow(start=start, end=end)
        # No start picked yet: behave like daily
        period = Period.DAILY
    if period == Period.DAILY:
        return PeriodWindow(start=start_of_day(now, tz_name), end=now)
    days = ROLLING_PERIOD_DAYS[period.value]
    return PeriodWindow(start=now - timedelta(days=days), end=now)


def _aggregate(snap: Snapshot, metric: Metric) -> int:
    return snap.overall_level if metric == Metric.LEVEL else snap.overall_experience


def _category_value(snap: Snapshot, name: str, metric: Metric) -> int:
    return snap.category_level(name) if metric == Metric.LEVEL else snap.category_experience(name)


def _category_names(first: Snapshot, last: Snapshot) -> list[str]:
    names = list(last.categories)
    names.extend(name for name in first.categories if name not in last.categories)
    return names


def _window_bounds(snapshots: list[Snapshot], window: PeriodWindow) -> tuple[Snapshot, Snapshot] | None:
    in_window = [s for s in snapshots if window.contains(s.captured_at)]
    if len(in_window) < 2:
        return None
    ordered = sort_snapshots(in_window)
    return ordered[0], ordered[-1]


def entity_delta(entity: Entity, snapshots: list[Snapshot], window: PeriodWindow, metric=Metric.EXPERIENCE) -> EntityDelta:
    metric = _as_metric(metric)
    bounds = _window_bounds(snapshots, window)
    if bounds is None:
        return EntityDelta(entity=entity)
    first, last = bounds
    # The total comes from the aggregate field and is never rebuilt from the
    # category breakdown, which only keeps strictly positive movements.
    total = max(0, _aggregate(last, metric) - _aggregate(first, metric))
    per_category = {}
    for name in _category_names(first, last):
        gained = _category_value(last, name, metric) - _category_value(first, name, metric)
        if gained > 0:
            per_category[name] = gained
    return EntityDelta(entity=entity, total=total, per_category=per_category)


def compute_delta(
    entities,
    snapshots_by_entity: Mapping,
    period,
    custom_range: tuple | None = None,
    now: datetime | None = None,
    metric=Metric.EXPERIENCE,
    tz_name: str | None = None,
) -> list[EntityDelta]:
    custom_start, custom_end = _split_range(custom_range)
    window = resolve_window(period, now=now, custom_start=custom_start, custom_end=custom_end, tz_name=tz_name)
    metric = _as_metric(metric)
    deltas = [
        entity_delta(entity, snapshots_for(snapshots_by_entity, entity.id), window, metric)
        for entity in coerce_roster(entities)
    ]
    deltas.sort(key=lambda d: d.total, reverse=True)
    log.debug(
        "deltas_computed",
        period=_as_period(period).value,
        metric=metric.value,
        window_start=window.start.isoformat(),
        entities=len(deltas),
    )
    return deltas


def training_distribution(
    entities,
    snapshots_by_entity: Mapping,
    period,
    custom_range: tuple | None = None,
    now: datetime | None = None,
    tz_name: str | None = None,
) -> list[dict]:
    """Share of positive per-category xp gains across all entities in the window."""
    custom_start, custom_end = _split_range(custom_range)
    window = resolve_window(period, now=now, custom_start=custom_start, custom_end=custom_end, tz_name=tz_name)
    gained: dict[str, int] = {}
    for entity in coerce_roster(entities):
        delta = entity_delta(entity, snapshots_for(snapshots_by_entity, entity.id), window)
        for name, xp in delta.per_category.items():
            gained[name] = gained.get(name, 0) + xp
    total = sum(gained.values())
    rows = [
        {
            "category": name,
            "xp": xp,
            "percentage": round(xp / total * 100, 2) if total else 0.0,
        }
        for name, xp in gained.items()
    ]
    rows.sort(key=lambda r: r["xp"], reverse=True)
    return rows


@dataclass(frozen=True)
class TimeBucket:
    label: str
    start: datetime
    end: datetime


def time_buckets(span: str, now: datetime | None = None, tz_name: str | None = None) -> list[TimeBucket]:
    now = ensure_utc(now) if now else now_utc()
    tz_name = tz_name or settings.reference_tz
    zone = tz.gettz(tz_name)
    buckets: list[TimeBucket] = []
    if span == "daily":
        start = start_of_local_day(now, tz_name)
        for i in range(8):
            b_start = start + timedelta(hours=3 * i)
            buckets.append(TimeBucket(f"{3 * i:02d}:00", b_start, b_start + timedelta(hours=3)))
    elif span == "weekly":
        start = start_of_local_day(now - timedelta(days=7), tz_name)
        for i in range(7):
            b_start = start + timedelta(days=i)
            buckets.append(TimeBucket(b_start.astimezone(zone).strftime("%a"), b_start, b_start + timedelta(days=1)))
    elif span == "monthly":
        start = start_of_local_day(now - timedelta(days=30), tz_name)
        step = timedelta(days=3.5)
        count = math.ceil((now - start) / step)
        for i in range(count):
            b_start = start + step * i
            b_end = min(b_start + step, now)
            label = f"{b_start.astimezone(zone).strftime('%b')} {b_start.astimezone(zone).day}"
            buckets.append(TimeBucket(label, b_start, b_end))
    elif span == "6month":
        local_now = now.astimezone(zone)
        first = (local_now - relativedelta(months=6)).date().replace(day=1)
        for i in range(6):
            month_start = first + relativedelta(months=i)
            b_start = start_of_local_day(datetime(month_start.year, month_start.month, 1, 12, tzinfo=zone), tz_name)
            next_month = month_start + relativedelta(months=1)
            b_end = start_of_local_day(datetime(next_month.year, next_month.month, 1, 12, tzinfo=zone), tz_name)
            buckets.append(TimeBucket(month_start.strftime("%b"), b_start, b_end))
    else:
        raise ValueError("span must be daily|weekly|monthly|6month")
    return buckets


def xp_over_time(
    entities,
    snapshots_by_entity: Mapping,
    span: str = "weekly",
    now: datetime | None = None,
    tz_name: str | None = None,
) -> list[dict]:
    buckets = time_buckets(span, now=now, tz_name=tz_name)
    roster = coerce_roster(entities)
    gains = [{e.id: 0 for e in roster} for _ in buckets]
    starts = [epoch_ms(b.start) for b in buckets]
    ends = [epoch_ms(b.end) for b in buckets]

    rows = []
    for entity in roster:
        snaps = snapshots_for(snapshots_by_entity, entity.id)
        if len(snaps) < 2:
            continue
        for seq, snap in enumerate(snaps):
            ms = epoch_ms(snap.captured_at)
            idx = bisect_right(starts, ms) - 1
            if idx < 0 or ms >= ends[idx]:
                continue
            rows.append({
                "entity_id": entity.id,
                "bucket": idx,
                "ms": ms,
                "seq": seq,
                "xp": snap.overall_experience,
            })

    if rows:
        df = pd.DataFrame(rows).sort_values(["ms", "seq"], kind="mergesort")
        grouped = df.groupby(["entity_id", "bucket"], sort=False)["xp"].agg(["first", "last", "count"])
        for (entity_id, idx), row in grouped.iterrows():
            if int(row["count"]) >= 2:
                gains[int(idx)][entity_id] = max(0, int(row["last"]) - int(row["first"]))

    return [
        {
            "label": bucket.label,
            "start": bucket.start.isoformat(),
            "end": bucket.end.isoformat(),
            "gains": gains[i],
        }
        for i, bucket in enumerate(buckets)
    ]

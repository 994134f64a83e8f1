from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping

import structlog

from ..utils import as_int, parse_timestamp
from .constants import AGGREGATE_CATEGORY

log = structlog.get_logger()


@dataclass(frozen=True)
class CategoryStat:
    rank: int = 0
    level: int = 0
    experience: int = 0


@dataclass(frozen=True)
class ActivityStat:
    rank: int = 0
    score: int = 0


@dataclass(frozen=True)
class Snapshot:
    captured_at: datetime
    overall_experience: int = 0
    overall_level: int = 0
    categories: Mapping[str, CategoryStat] = field(default_factory=dict)
    activities: Mapping[str, ActivityStat] = field(default_factory=dict)

    def category_level(self, name: str) -> int:
        stat = self.categories.get(name)
        return stat.level if stat else 0

    def category_experience(self, name: str) -> int:
        stat = self.categories.get(name)
        return stat.experience if stat else 0

    def activity_score(self, name: str) -> int:
        stat = self.activities.get(name)
        return stat.score if stat else 0


@dataclass(frozen=True)
class Entity:
    id: str
    name: str


def _category(raw) -> CategoryStat:
    if isinstance(raw, CategoryStat):
        return raw
    if not isinstance(raw, Mapping):
        return CategoryStat()
    return CategoryStat(
        rank=as_int(raw.get("rank")),
        level=as_int(raw.get("level")),
        experience=as_int(raw.get("experience", raw.get("xp"))),
    )


def _activity(raw) -> ActivityStat:
    if isinstance(raw, ActivityStat):
        return raw
    if not isinstance(raw, Mapping):
        return ActivityStat()
    return ActivityStat(rank=as_int(raw.get("rank")), score=as_int(raw.get("score")))


def parse_snapshot(raw: Any) -> Snapshot | None:
    if isinstance(raw, Snapshot):
        return raw
    if not isinstance(raw, Mapping):
        return None
    captured_at = parse_timestamp(raw.get("captured_at", raw.get("fetched_at")))
    if captured_at is None:
        return None

    skills = raw.get("categories", raw.get("skills"))
    if not isinstance(skills, Mapping):
        skills = {}
    aggregate = _category(skills.get(AGGREGATE_CATEGORY))
    categories = {
        str(name): _category(stat)
        for name, stat in skills.items()
        if name != AGGREGATE_CATEGORY
    }

    activities = raw.get("activities")
    if not isinstance(activities, Mapping):
        activities = {}

    overall_xp = raw.get("overall_experience")
    overall_level = raw.get("overall_level")
    return Snapshot(
        captured_at=captured_at,
        overall_experience=as_int(overall_xp) if overall_xp is not None else aggregate.experience,
        overall_level=as_int(overall_level) if overall_level is not None else aggregate.level,
        categories=categories,
        activities={str(name): _activity(stat) for name, stat in activities.items()},
    )


def coerce_snapshots(value) -> list[Snapshot]:
    if not isinstance(value, (list, tuple)):
        return []
    out = []
    dropped = 0
    for raw in value:
        snap = parse_snapshot(raw)
        if snap is None:
            dropped += 1
            continue
        out.append(snap)
    if dropped:
        log.debug("snapshots_dropped", dropped=dropped, kept=len(out))
    return out


def sort_snapshots(snapshots: Iterable[Snapshot]) -> list[Snapshot]:
    # sorted() is stable, so equal timestamps keep their input order
    return sorted(snapshots, key=lambda s: s.captured_at)


def coerce_entity(raw) -> Entity | None:
    if isinstance(raw, Entity):
        return raw
    if not isinstance(raw, Mapping) or raw.get("id") is None:
        return None
    entity_id = str(raw["id"])
    return Entity(id=entity_id, name=str(raw.get("name") or entity_id))


def coerce_roster(value) -> list[Entity]:
    if not isinstance(value, (list, tuple)):
        return []
    return [e for e in (coerce_entity(raw) for raw in value) if e is not None]


def snapshots_for(snapshots_by_entity, entity_id: str) -> list[Snapshot]:
    if not isinstance(snapshots_by_entity, Mapping):
        return []
    value = snapshots_by_entity.get(entity_id)
    if value is None:
        # JSON bodies key everything by string, rosters may not
        for key, candidate in snapshots_by_entity.items():
            if str(key) == entity_id:
                value = candidate
                break
    return coerce_snapshots(value)


def latest_snapshot(snapshots: Iterable[Snapshot]) -> Snapshot | None:
    ordered = sort_snapshots(snapshots)
    return ordered[-1] if ordered else None

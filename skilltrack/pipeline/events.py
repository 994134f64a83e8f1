from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Mapping

import structlog

from ..config import settings
from ..utils import epoch_ms
from .constants import (
    BOSS_KEYWORDS,
    TOTAL_LEVEL_MILESTONE_FLOOR,
    TOTAL_LEVEL_STEP,
    XP_MILESTONE_STEP,
)
from .snapshots import Entity, Snapshot, coerce_roster, snapshots_for, sort_snapshots

log = structlog.get_logger()


class EventKind(str, Enum):
    LEVEL_GAIN = "level_gain"
    XP_MILESTONE = "xp_milestone"
    TOTAL_LEVEL_MILESTONE = "total_level_milestone"
    BOSS_KILL = "boss_kill"


@dataclass(frozen=True)
class Event:
    id: str
    kind: EventKind
    entity_id: str
    entity_name: str
    occurred_at: datetime
    description: str
    category: str | None = None
    level: int | None = None
    xp: int | None = None
    milestone: int | None = None
    total_level: int | None = None
    boss_name: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "occurred_at": self.occurred_at.isoformat(),
            "description": self.description,
            "category": self.category,
            "level": self.level,
            "xp": self.xp,
            "milestone": self.milestone,
            "total_level": self.total_level,
            "boss_name": self.boss_name,
        }


def is_boss_activity(name: str) -> bool:
    lowered = name.lower()
    return any(keyword in lowered for keyword in BOSS_KEYWORDS)


def _title_case(name: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in re.split(r"\s+", name.strip()) if word)


def _level_gains(entity: Entity, prev: Snapshot, curr: Snapshot, ms: int) -> list[Event]:
    out = []
    for category, stat in curr.categories.items():
        level = stat.level
        if level > prev.category_level(category):
            out.append(Event(
                id=f"{entity.id}-{category}-{level}-{ms}",
                kind=EventKind.LEVEL_GAIN,
                entity_id=entity.id,
                entity_name=entity.name,
                occurred_at=curr.captured_at,
                description=f"Gained level {level} in {category}",
                category=category,
                level=level,
            ))
    return out


def _xp_milestone(entity: Entity, prev: Snapshot, curr: Snapshot, ms: int) -> Event | None:
    current = curr.overall_experience // XP_MILESTONE_STEP
    previous = prev.overall_experience // XP_MILESTONE_STEP
    if current <= previous or current < 1:
        return None
    return Event(
        id=f"{entity.id}-xp-milestone-{current}-{ms}",
        kind=EventKind.XP_MILESTONE,
        entity_id=entity.id,
        entity_name=entity.name,
        occurred_at=curr.captured_at,
        description=f"Reached {current}M total XP",
        xp=curr.overall_experience,
        milestone=current,
    )


def _total_level_milestone(entity: Entity, prev: Snapshot, curr: Snapshot, ms: int) -> Event | None:
    current = (curr.overall_level // TOTAL_LEVEL_STEP) * TOTAL_LEVEL_STEP
    previous = (prev.overall_level // TOTAL_LEVEL_STEP) * TOTAL_LEVEL_STEP
    if current <= previous or current < TOTAL_LEVEL_MILESTONE_FLOOR:
        return None
    return Event(
        id=f"{entity.id}-total-level-{current}-{ms}",
        kind=EventKind.TOTAL_LEVEL_MILESTONE,
        entity_id=entity.id,
        entity_name=entity.name,
        occurred_at=curr.captured_at,
        description=f"Reached {current} total level",
        total_level=current,
    )


def _boss_kills(entity: Entity, prev: Snapshot, curr: Snapshot, ms: int) -> list[Event]:
    out = []
    for activity, stat in curr.activities.items():
        kills = stat.score - prev.activity_score(activity)
        if kills <= 0 or not is_boss_activity(activity):
            continue
        boss = _title_case(activity)
        out.append(Event(
            id=f"{entity.id}-boss-kill-{activity}-{ms}",
            kind=EventKind.BOSS_KILL,
            entity_id=entity.id,
            entity_name=entity.name,
            occurred_at=curr.captured_at,
            description=f"killed {boss}" if kills == 1 else f"killed {boss} {kills} times",
            boss_name=boss,
        ))
    return out


def detect_entity_events(entity: Entity, snapshots: Iterable[Snapshot], include_boss_kills: bool | None = None) -> list[Event]:
    if include_boss_kills is None:
        include_boss_kills = settings.detect_boss_kills
    ordered = sort_snapshots(snapshots)
    if len(ordered) < 2:
        return []
    events: list[Event] = []
    for prev, curr in zip(ordered, ordered[1:]):
        ms = epoch_ms(curr.captured_at)
        events.extend(_level_gains(entity, prev, curr, ms))
        milestone = _xp_milestone(entity, prev, curr, ms)
        if milestone:
            events.append(milestone)
        total = _total_level_milestone(entity, prev, curr, ms)
        if total:
            events.append(total)
        if include_boss_kills:
            events.extend(_boss_kills(entity, prev, curr, ms))
    return events


def detect_events(entities, snapshots_by_entity: Mapping, include_boss_kills: bool | None = None) -> list[Event]:
    """Derive the activity feed for every entity in the roster.

    Snapshot lists may arrive unsorted; each entity is ordered by capture time
    before consecutive pairs are compared. The result is newest first, with
    equal timestamps kept in emission order. Ids depend only on the inputs, so
    recomputing over the same snapshots yields the same feed.
    """
    roster = coerce_roster(entities)
    events: list[Event] = []
    for entity in roster:
        snaps = snapshots_for(snapshots_by_entity, entity.id)
        if len(snaps) < 2:
            continue
        events.extend(detect_entity_events(entity, snaps, include_boss_kills=include_boss_kills))
    events.sort(key=lambda e: e.occurred_at, reverse=True)
    log.debug("events_detected", entities=len(roster), events=len(events))
    return events


def events_for_entity(events: Iterable[Event], entity_id) -> list[Event]:
    target = str(entity_id)
    return [e for e in events if e.entity_id == target]


def recent_events(events: Iterable[Event], limit: int | None = None) -> list[Event]:
    items = list(events)
    if limit is None or limit < 0:
        return items
    return items[:limit]


def dedupe_events(*feeds: Iterable[Event]) -> list[Event]:
    seen = set()
    merged = []
    for feed in feeds:
        for event in feed:
            if event.id in seen:
                continue
            seen.add(event.id)
            merged.append(event)
    merged.sort(key=lambda e: e.occurred_at, reverse=True)
    return merged

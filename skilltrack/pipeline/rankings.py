from __future__ import annotations

from typing import Mapping

from .constants import CATEGORY_ORDER, COMBAT_CATEGORIES, MAX_LEVEL, NON_COMBAT_CATEGORIES
from .levels import experience_to_next_level, experience_to_reach_level
from .snapshots import Entity, Snapshot, coerce_roster, latest_snapshot, snapshots_for


def _latest_by_entity(entities, snapshots_by_entity: Mapping) -> list[tuple[Entity, Snapshot | None]]:
    return [
        (entity, latest_snapshot(snapshots_for(snapshots_by_entity, entity.id)))
        for entity in coerce_roster(entities)
    ]


def _ordered_categories(snap: Snapshot) -> list[str]:
    known = [name for name in CATEGORY_ORDER if name in snap.categories]
    return known + [name for name in snap.categories if name not in CATEGORY_ORDER]


def next_level_board(entities, snapshots_by_entity: Mapping) -> list[dict]:
    board = []
    for entity, snap in _latest_by_entity(entities, snapshots_by_entity):
        if snap is None:
            continue
        closest = None
        for name in _ordered_categories(snap):
            stat = snap.categories[name]
            if stat.level >= MAX_LEVEL:
                continue
            remaining = experience_to_next_level(stat.experience)
            if closest is None or remaining < closest["xp_remaining"]:
                closest = {
                    "entity": {"id": entity.id, "name": entity.name},
                    "category": name,
                    "current_level": stat.level,
                    "next_level": stat.level + 1,
                    "xp_remaining": remaining,
                }
        if closest:
            board.append(closest)
    board.sort(key=lambda row: row["xp_remaining"])
    return board


def ninety_nines_board(entities, snapshots_by_entity: Mapping) -> list[dict]:
    board = []
    for entity, snap in _latest_by_entity(entities, snapshots_by_entity):
        if snap is None:
            continue
        names = _ordered_categories(snap)
        maxed = [name for name in names if snap.categories[name].level >= MAX_LEVEL]
        next_closest = None
        for name in names:
            stat = snap.categories[name]
            if stat.level >= MAX_LEVEL:
                continue
            remaining = experience_to_reach_level(stat.experience, MAX_LEVEL)
            if next_closest is None or remaining < next_closest["xp_remaining"]:
                next_closest = {"category": name, "current_level": stat.level, "xp_remaining": remaining}
        if not maxed and next_closest is None:
            continue
        board.append({
            "entity": {"id": entity.id, "name": entity.name},
            "maxed": maxed,
            "next_closest": next_closest,
        })
    board.sort(key=lambda row: len(row["maxed"]), reverse=True)
    return board


def combined_totals(entities, snapshots_by_entity: Mapping) -> dict:
    latest = _latest_by_entity(entities, snapshots_by_entity)
    count = len(latest)
    combined_level = sum(snap.overall_level for _, snap in latest if snap)
    combined_xp = sum(snap.overall_experience for _, snap in latest if snap)
    averages = []
    for name in CATEGORY_ORDER:
        total = sum(snap.category_level(name) for _, snap in latest if snap)
        averages.append({"category": name, "average": round(total / count, 2) if count else 0.0})
    averages.sort(key=lambda row: row["average"], reverse=True)
    return {
        "combined_level": combined_level,
        "combined_experience": combined_xp,
        "average_overall_level": round(combined_level / count, 2) if count else 0.0,
        "category_averages": averages,
    }


def _xp_sum(snap: Snapshot | None, names) -> int:
    if snap is None:
        return 0
    return sum(snap.category_experience(name) for name in names)


def _top(rows: list[dict], key: str) -> dict | None:
    if not rows:
        return None
    # stable: the first entity in roster order wins ties
    return sorted(rows, key=lambda row: row[key], reverse=True)[0]


def general_stats(entities, snapshots_by_entity: Mapping) -> dict:
    """Headline facts for the general-stats panel.

    Entities without a snapshot still count, with every total at zero.
    """
    latest = _latest_by_entity(entities, snapshots_by_entity)

    closest = grind = None
    for entity, snap in latest:
        if snap is None:
            continue
        for name in _ordered_categories(snap):
            stat = snap.categories[name]
            if stat.level >= MAX_LEVEL:
                continue
            remaining = experience_to_next_level(stat.experience)
            row = {
                "entity": {"id": entity.id, "name": entity.name},
                "category": name,
                "next_level": stat.level + 1,
                "xp_remaining": remaining,
            }
            if closest is None or remaining < closest["xp_remaining"]:
                closest = row
            if remaining > (grind["xp_remaining"] if grind else 0):
                grind = row

    combat, skilling, averages, overall = [], [], [], []
    for entity, snap in latest:
        ref = {"id": entity.id, "name": entity.name}
        combat.append({"entity": ref, "experience": _xp_sum(snap, COMBAT_CATEGORIES)})
        skilling.append({"entity": ref, "experience": _xp_sum(snap, NON_COMBAT_CATEGORIES)})
        levels = [stat.level for stat in snap.categories.values()] if snap else []
        averages.append({"entity": ref, "average": round(sum(levels) / len(levels), 2) if levels else 0.0})
        overall.append({"entity": ref, "experience": snap.overall_experience if snap else 0})

    gap = None
    if len(overall) >= 2:
        leader, second = sorted(overall, key=lambda row: row["experience"], reverse=True)[:2]
        gap = {
            "leader": leader["entity"],
            "second": second["entity"],
            "experience": leader["experience"] - second["experience"],
        }

    return {
        "closest_to_next_level": closest,
        "biggest_grind": grind,
        "most_combat_xp": _top(combat, "experience"),
        "top_skiller": _top(skilling, "experience"),
        "highest_average_level": _top(averages, "average"),
        "xp_gap": gap,
    }

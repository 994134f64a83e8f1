from __future__ import annotations

from dataclasses import dataclass

GRID_COLUMNS = 12


@dataclass(frozen=True)
class Size:
    w: int
    h: int


@dataclass(frozen=True)
class PanelConfig:
    id: str
    title: str
    default_enabled: bool
    default_size: Size
    min_size: Size | None = None
    max_size: Size | None = None
    description: str = ""


def _registry(*panels: PanelConfig) -> dict[str, PanelConfig]:
    return {panel.id: panel for panel in panels}


DASHBOARD_REGISTRY = _registry(
    PanelConfig("overall-rankings", "Overall Rankings", True, Size(6, 5), Size(4, 3),
                description="Ranked table of all players by overall stats"),
    PanelConfig("ninety-nines", "99s Table", True, Size(6, 4), Size(4, 3),
                description="Players with level 99 skills and next closest 99s"),
    PanelConfig("next-level", "Next Level", True, Size(5, 4), Size(4, 3),
                description="Players closest to their next level up"),
    PanelConfig("general-stats", "General Stats", True, Size(4, 5), Size(3, 3),
                description="Interesting statistics and leaderboards"),
    PanelConfig("combined-totals", "Combined Totals", True, Size(4, 3), Size(3, 2),
                description="Total levels, XP, and average skills"),
    PanelConfig("xp-gained", "XP Gained", True, Size(5, 4), Size(4, 3),
                description="XP gained per player over the selected period"),
    PanelConfig("levels-gained", "Levels Gained", True, Size(5, 4), Size(4, 3),
                description="Levels gained per player over the selected period"),
    PanelConfig("skill-training-pie", "Skill Training Distribution", True, Size(5, 4), Size(4, 3),
                description="Percentage breakdown of skills being trained"),
    PanelConfig("xp-over-time", "XP Over Time", True, Size(8, 6), Size(6, 4),
                description="XP gain over time"),
    PanelConfig("all-activity-ledger", "All Players Activity", True, Size(6, 8), Size(4, 6),
                description="Latest activities across all players"),
)

PLAYER_REGISTRY = _registry(
    PanelConfig("player-levels", "Levels", True, Size(6, 8), Size(4, 6),
                description="All skill levels for this player"),
    PanelConfig("player-xp-over-time", "XP Over Time", True, Size(8, 6), Size(6, 4),
                description="XP gain over time"),
    PanelConfig("player-skill-training", "Skill Training Distribution", True, Size(5, 4), Size(4, 3),
                description="Percentage breakdown of skills being trained"),
    PanelConfig("player-general-stats", "General Stats", True, Size(4, 5), Size(3, 3),
                description="Next level, furthest grind, and number of 99s"),
    PanelConfig("player-activity-ledger", "Activity Ledger", True, Size(6, 6), Size(4, 4),
                description="Latest significant activities"),
)

REGISTRIES = {
    "dashboard": DASHBOARD_REGISTRY,
    "player": PLAYER_REGISTRY,
}

# Pinned to the front of the default order on their page
PRIMARY_PANELS = {
    "dashboard": "overall-rankings",
    "player": "player-levels",
}


def get_registry(page: str) -> dict[str, PanelConfig]:
    if page not in REGISTRIES:
        raise KeyError(page)
    return REGISTRIES[page]

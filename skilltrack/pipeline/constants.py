from __future__ import annotations

# Progression curve
MIN_LEVEL = 1
MAX_LEVEL = 99

# Milestones
XP_MILESTONE_STEP = 1_000_000       # whole millions of overall xp
TOTAL_LEVEL_STEP = 50
TOTAL_LEVEL_MILESTONE_FLOOR = 1850  # crossings below this are noise

# Period windows (days, rolling back from now)
ROLLING_PERIOD_DAYS = {
    "weekly": 7,
    "monthly": 30,
    "yearly": 365,
}

AGGREGATE_CATEGORY = "Overall"

CATEGORY_ORDER = [
    "Attack",
    "Defence",
    "Strength",
    "Hitpoints",
    "Ranged",
    "Prayer",
    "Magic",
    "Cooking",
    "Woodcutting",
    "Fletching",
    "Fishing",
    "Firemaking",
    "Crafting",
    "Smithing",
    "Mining",
    "Herblore",
    "Agility",
    "Thieving",
    "Slayer",
    "Farming",
    "Runecrafting",
    "Hunter",
    "Construction",
    "Sailing",
]

COMBAT_CATEGORIES = ["Attack", "Defence", "Strength", "Hitpoints", "Ranged", "Prayer", "Magic"]
NON_COMBAT_CATEGORIES = [c for c in CATEGORY_ORDER if c not in COMBAT_CATEGORIES]

# Activity names containing any of these count as boss encounters.
BOSS_KEYWORDS = (
    "boss", "kill", "chest", "chambers", "theatre", "inferno", "gauntlet",
    "nightmare", "nex", "zulrah", "vorkath", "cerberus", "kraken", "sire",
    "hydra", "barrows", "corp", "zilyana", "bandos", "armadyl", "saradomin",
    "zamorak",
)

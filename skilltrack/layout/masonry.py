from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from ..config import settings

MIN_COLUMNS = 1
MAX_COLUMNS = 3


@dataclass(frozen=True)
class PanelPosition:
    left: float
    top: float
    width: float
    height: float
    column: int


@dataclass
class MasonryLayout:
    positions: dict[str, PanelPosition] = field(default_factory=dict)
    column_heights: list[float] = field(default_factory=list)
    container_height: float = 0.0
    column_width: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.positions

    def to_dict(self) -> dict:
        return {
            "positions": {
                panel_id: {
                    "left": pos.left,
                    "top": pos.top,
                    "width": pos.width,
                    "height": pos.height,
                    "column": pos.column,
                }
                for panel_id, pos in self.positions.items()
            },
            "column_heights": list(self.column_heights),
            "container_height": self.container_height,
            "column_width": self.column_width,
        }


def normalize_columns(columns) -> int:
    try:
        count = int(columns)
    except (TypeError, ValueError):
        return MIN_COLUMNS
    return max(MIN_COLUMNS, min(MAX_COLUMNS, count))


def _height(heights: Mapping | None, panel_id: str, fallback: float) -> float:
    value = (heights or {}).get(panel_id)
    if value is None or isinstance(value, bool):
        return fallback
    try:
        num = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(num) or num <= 0:
        return fallback
    return num


def pack(
    panel_ids: Iterable[str],
    heights: Mapping | None = None,
    columns=3,
    container_width: float | None = None,
    gap: float | None = None,
    fallback_height: float | None = None,
) -> MasonryLayout:
    """Place panels shortest-column-first, in the order given.

    One greedy pass with no look-ahead: each panel goes to the column with the
    smallest running height (lowest index on ties) and pushes that column down
    by its height plus the gap. Panels without a usable measurement use the
    fallback height.
    """
    columns = normalize_columns(columns)
    container_width = settings.layout_container_width if container_width is None else float(container_width)
    gap = settings.layout_gap if gap is None else float(gap)
    fallback = settings.layout_fallback_height if fallback_height is None else float(fallback_height)

    column_width = max(0.0, (container_width - gap * (columns - 1)) / columns)
    column_heights = [0.0] * columns
    positions: dict[str, PanelPosition] = {}
    for panel_id in panel_ids:
        if panel_id in positions:
            continue
        col = column_heights.index(min(column_heights))
        height = _height(heights, panel_id, fallback)
        positions[panel_id] = PanelPosition(
            left=col * (column_width + gap),
            top=column_heights[col],
            width=column_width,
            height=height,
            column=col,
        )
        column_heights[col] += height + gap

    return MasonryLayout(
        positions=positions,
        column_heights=column_heights,
        container_height=max(column_heights + [0.0]),
        column_width=column_width,
    )

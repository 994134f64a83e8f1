from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Mapping

import structlog

from ..config import settings
from .masonry import MasonryLayout, pack
from .store import LayoutConfigStore

log = structlog.get_logger()


@dataclass(frozen=True)
class RelayoutRequest:
    generation: int
    due_at: float
    reason: str


class RelayoutSession:
    """Coordinates re-packing while panel heights are still being measured.

    Heights arrive asynchronously from whatever renders the panels. Every new
    measurement or viewport change issues a fresh request, and only the most
    recent request may be applied once its debounce has elapsed; older tokens
    are discarded so a stale layout never overwrites a newer one. Until the
    first request settles, ``current`` is an empty layout.
    """

    def __init__(self, store: LayoutConfigStore, columns: int | None = None,
                 container_width: float | None = None, debounce_ms: int | None = None,
                 clock=time.monotonic):
        self.store = store
        self.columns = columns if columns is not None else settings.layout_columns
        self.container_width = container_width if container_width is not None else settings.layout_container_width
        self.debounce = (settings.relayout_debounce_ms if debounce_ms is None else debounce_ms) / 1000.0
        self.clock = clock
        self.heights: dict[str, float] = {}
        self.current = MasonryLayout()
        self._generation = 0
        self._pending: RelayoutRequest | None = None

    @property
    def pending(self) -> RelayoutRequest | None:
        return self._pending

    def request(self, reason: str = "manual") -> RelayoutRequest:
        self._generation += 1
        self._pending = RelayoutRequest(self._generation, self.clock() + self.debounce, reason)
        return self._pending

    def report_heights(self, heights: Mapping[str, float]) -> RelayoutRequest:
        self.heights.update({str(k): v for k, v in heights.items()})
        return self.request("measured")

    def resize_viewport(self, container_width: float, columns: int | None = None) -> RelayoutRequest:
        self.container_width = float(container_width)
        if columns is not None:
            self.columns = columns
        return self.request("viewport")

    def settle(self, token: RelayoutRequest, now: float | None = None) -> MasonryLayout | None:
        if self._pending is None or token.generation != self._pending.generation:
            log.debug("relayout_superseded", generation=token.generation)
            return None
        now = self.clock() if now is None else now
        if now < token.due_at:
            return None
        panel_ids = [item.id for item in self.store.enabled_items()]
        self.current = pack(panel_ids, self.heights, self.columns, container_width=self.container_width)
        self._pending = None
        return self.current

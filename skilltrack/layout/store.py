from __future__ import annotations

import json
from dataclasses import dataclass, replace

import structlog

from .persistence import MemoryPersistence, Persistence
from .registry import GRID_COLUMNS, PRIMARY_PANELS, PanelConfig, get_registry

log = structlog.get_logger()

STORAGE_KEY_PREFIX = "layout:"


@dataclass(frozen=True)
class LayoutItem:
    id: str
    x: int = 0
    y: int = 0
    w: int = 1
    h: int = 1

    def to_dict(self) -> dict:
        return {"i": self.id, "x": self.x, "y": self.y, "w": self.w, "h": self.h}


@dataclass(frozen=True)
class LayoutState:
    items: tuple[LayoutItem, ...] = ()
    enabled: tuple[str, ...] = ()

    def item(self, panel_id: str) -> LayoutItem | None:
        for item in self.items:
            if item.id == panel_id:
                return item
        return None

    def to_dict(self) -> dict:
        return {"items": [item.to_dict() for item in self.items], "enabled": list(self.enabled)}

    @classmethod
    def from_dict(cls, raw: dict) -> "LayoutState":
        if not isinstance(raw, dict):
            raise ValueError("layout must be an object")
        items_raw = raw.get("items")
        enabled_raw = raw.get("enabled")
        if not isinstance(items_raw, list) or not isinstance(enabled_raw, list):
            raise ValueError("layout needs items and enabled lists")
        items = []
        for entry in items_raw:
            if not isinstance(entry, dict):
                continue
            panel_id = entry.get("i", entry.get("id"))
            if panel_id is None:
                continue
            items.append(LayoutItem(
                id=str(panel_id),
                x=int(entry.get("x", 0)),
                y=int(entry.get("y", 0)),
                w=int(entry.get("w", 1)),
                h=int(entry.get("h", 1)),
            ))
        return cls(items=tuple(items), enabled=tuple(str(i) for i in enabled_raw))


def enabled_items(state: LayoutState) -> list[LayoutItem]:
    """Items in render order; enabled ids without an item are skipped."""
    out = []
    for panel_id in state.enabled:
        item = state.item(panel_id)
        if item is not None:
            out.append(item)
    return out


def _default_item(config: PanelConfig, x: int = 0, y: int = 0) -> LayoutItem:
    return LayoutItem(id=config.id, x=x, y=y, w=config.default_size.w, h=config.default_size.h)


def default_layout(page: str, registry: dict[str, PanelConfig] | None = None) -> LayoutState:
    registry = registry if registry is not None else get_registry(page)
    primary = PRIMARY_PANELS.get(page)
    ordered = sorted(registry.values(), key=lambda c: 0 if c.id == primary else 1)
    enabled: list[str] = []
    items: list[LayoutItem] = []
    x = y = 0
    for config in ordered:
        if not config.default_enabled:
            continue
        enabled.append(config.id)
        items.append(_default_item(config, x, y))
        x += config.default_size.w
        if x >= GRID_COLUMNS:
            x = 0
            y += config.default_size.h
    return LayoutState(items=tuple(items), enabled=tuple(enabled))


def _clamp(value: int, low: int | None, high: int | None) -> int:
    if low is not None:
        value = max(low, value)
    if high is not None:
        value = min(high, value)
    return value


class LayoutConfigStore:
    """Persisted panel configuration for one page.

    Every enabled panel has exactly one item. Items of disabled panels may
    linger so a panel keeps its size when switched back on. Each mutation is
    written straight through to the persistence port.
    """

    def __init__(self, page: str = "dashboard", persistence: Persistence | None = None,
                 registry: dict[str, PanelConfig] | None = None):
        self.page = page
        self.registry = registry if registry is not None else get_registry(page)
        self.persistence = persistence if persistence is not None else MemoryPersistence()
        self.state = self._load()

    @property
    def storage_key(self) -> str:
        return f"{STORAGE_KEY_PREFIX}{self.page}"

    def _defaults(self) -> LayoutState:
        return default_layout(self.page, self.registry)

    def _load(self) -> LayoutState:
        blob = self.persistence.load(self.storage_key)
        if not blob:
            return self._defaults()
        try:
            state = LayoutState.from_dict(json.loads(blob))
        except (ValueError, TypeError, OverflowError) as e:
            log.warning("layout_load_corrupt", page=self.page, err=str(e))
            return self._defaults()
        return self._normalize(state)

    def _normalize(self, state: LayoutState) -> LayoutState:
        enabled: list[str] = []
        for panel_id in state.enabled:
            if panel_id in self.registry and panel_id not in enabled:
                enabled.append(panel_id)
        items: list[LayoutItem] = []
        seen = set()
        for item in state.items:
            if item.id in seen:
                continue
            seen.add(item.id)
            items.append(item)
        for panel_id in enabled:
            if panel_id not in seen:
                items.append(_default_item(self.registry[panel_id]))
        return LayoutState(items=tuple(items), enabled=tuple(enabled))

    def _commit(self, state: LayoutState) -> LayoutState:
        self.state = state
        self.persistence.save(self.storage_key, json.dumps(state.to_dict()))
        return state

    def enabled_items(self) -> list[LayoutItem]:
        return enabled_items(self.state)

    def toggle(self, panel_id: str, enabled: bool) -> LayoutState:
        config = self.registry.get(panel_id)
        if config is None:
            return self.state
        prev = self.state
        if enabled:
            new_enabled = prev.enabled if panel_id in prev.enabled else prev.enabled + (panel_id,)
            if prev.item(panel_id) is not None:
                new_items = prev.items
            else:
                new_items = prev.items + (_default_item(config),)
        else:
            new_enabled = tuple(i for i in prev.enabled if i != panel_id)
            new_items = tuple(item for item in prev.items if item.id != panel_id)
        return self._commit(LayoutState(items=new_items, enabled=new_enabled))

    def reorder(self, new_order) -> LayoutState:
        prev = self.state
        valid: list[str] = []
        for panel_id in new_order or []:
            if panel_id in prev.enabled and panel_id not in valid:
                valid.append(panel_id)
        missing = [panel_id for panel_id in prev.enabled if panel_id not in valid]
        order = tuple(valid + missing)
        if order == prev.enabled:
            return prev
        return self._commit(replace(prev, enabled=order))

    def reset(self) -> LayoutState:
        return self._commit(self._defaults())

    def resize(self, panel_id: str, **updates) -> LayoutState:
        prev = self.state
        current = prev.item(panel_id)
        if current is None:
            return prev
        changes = {k: int(v) for k, v in updates.items() if k in ("x", "y", "w", "h") and v is not None}
        config = self.registry.get(panel_id)
        if config is not None:
            if "w" in changes:
                changes["w"] = _clamp(changes["w"], config.min_size.w if config.min_size else None,
                                      config.max_size.w if config.max_size else None)
            if "h" in changes:
                changes["h"] = _clamp(changes["h"], config.min_size.h if config.min_size else None,
                                      config.max_size.h if config.max_size else None)
        updated = replace(current, **changes)
        items = tuple(updated if item.id == panel_id else item for item in prev.items)
        return self._commit(replace(prev, items=items))

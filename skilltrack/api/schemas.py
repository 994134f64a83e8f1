from pydantic import BaseModel
from typing import Any, Optional, Literal

class SnapshotFeed(BaseModel):
    entities: list[dict[str, Any]] = []
    snapshots: dict[str, Any] = {}
    now: Optional[str] = None

class ActivityRequest(SnapshotFeed):
    limit: Optional[int] = None
    entity_id: Optional[str] = None

class DeltaRequest(SnapshotFeed):
    period: str = "weekly"
    start: Optional[str] = None
    end: Optional[str] = None
    metric: Literal['experience', 'level'] = "experience"

class DistributionRequest(SnapshotFeed):
    period: str = "weekly"
    start: Optional[str] = None
    end: Optional[str] = None

class XpOverTimeRequest(SnapshotFeed):
    span: Literal['daily', 'weekly', 'monthly', '6month'] = "weekly"

class ToggleRequest(BaseModel):
    panel_id: str
    enabled: bool

class ReorderRequest(BaseModel):
    order: list[str]

class ResizeRequest(BaseModel):
    panel_id: str
    x: Optional[int] = None
    y: Optional[int] = None
    w: Optional[int] = None
    h: Optional[int] = None

class PackRequest(BaseModel):
    heights: dict[str, float] = {}
    columns: int = 3
    container_width: Optional[float] = None
    gap: Optional[float] = None

from fastapi import APIRouter, HTTPException
from .schemas import (
    ActivityRequest,
    DeltaRequest,
    DistributionRequest,
    PackRequest,
    ReorderRequest,
    ResizeRequest,
    SnapshotFeed,
    ToggleRequest,
    XpOverTimeRequest,
)
from ..config import settings
from ..db import get_conn
from ..utils import parse_timestamp
from ..pipeline.events import detect_events, events_for_entity, recent_events
from ..pipeline.periods import compute_delta, training_distribution, xp_over_time
from ..pipeline.rankings import combined_totals, general_stats, next_level_board, ninety_nines_board
from ..layout.masonry import pack
from ..layout.persistence import SqlitePersistence
from ..layout.registry import REGISTRIES
from ..layout.store import LayoutConfigStore

router = APIRouter()

def _now(req: SnapshotFeed):
    if req.now is None:
        return None
    now = parse_timestamp(req.now)
    if now is None:
        raise HTTPException(400, 'now must be an ISO timestamp')
    return now

def _store(page: str) -> LayoutConfigStore:
    if page not in REGISTRIES:
        raise HTTPException(404, f'unknown layout page: {page}')
    return LayoutConfigStore(page, SqlitePersistence(get_conn(settings.db_path)))

def _layout_payload(store: LayoutConfigStore):
    return {'page': store.page, **store.state.to_dict()}

@router.get(
    '/health',
    summary="Health check",
    tags=["Health"],
)
def health():
    try:
        conn = get_conn(settings.db_path)
        conn.execute("SELECT 1").fetchone()
        return {'ok': True, 'db': 'ok', 'reference_tz': settings.reference_tz}
    except Exception as e:
        raise HTTPException(503, f'db_error: {e}')

@router.post(
    '/activity',
    summary="Activity feed",
    description="Detects level gains, milestones and boss kills from snapshot history, newest first.",
    tags=["Activity"],
)
def activity(req: ActivityRequest):
    events = detect_events(req.entities, req.snapshots)
    if req.entity_id is not None:
        events = events_for_entity(events, req.entity_id)
    limit = req.limit if req.limit is not None else settings.feed_limit
    return {'events': [e.to_dict() for e in recent_events(events, limit)]}

@router.post(
    '/deltas',
    summary="Period deltas",
    description="XP or level gained per entity over daily|weekly|monthly|yearly|custom windows.",
    tags=["Periods"],
)
def deltas(req: DeltaRequest):
    try:
        rows = compute_delta(
            req.entities,
            req.snapshots,
            req.period,
            custom_range=(req.start, req.end),
            now=_now(req),
            metric=req.metric,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {'period': req.period, 'metric': req.metric, 'deltas': [row.to_dict() for row in rows]}

@router.post(
    '/training-distribution',
    summary="Skill training distribution",
    tags=["Periods"],
)
def distribution(req: DistributionRequest):
    try:
        rows = training_distribution(
            req.entities, req.snapshots, req.period, custom_range=(req.start, req.end), now=_now(req)
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {'period': req.period, 'categories': rows}

@router.post(
    '/xp-over-time',
    summary="XP gained per time bucket",
    tags=["Periods"],
)
def xp_timeline(req: XpOverTimeRequest):
    return {'span': req.span, 'buckets': xp_over_time(req.entities, req.snapshots, req.span, now=_now(req))}

@router.post('/rankings/next-level', tags=["Rankings"])
def rankings_next_level(req: SnapshotFeed):
    return {'rows': next_level_board(req.entities, req.snapshots)}

@router.post('/rankings/ninety-nines', tags=["Rankings"])
def rankings_ninety_nines(req: SnapshotFeed):
    return {'rows': ninety_nines_board(req.entities, req.snapshots)}

@router.post('/rankings/combined-totals', tags=["Rankings"])
def rankings_combined(req: SnapshotFeed):
    return combined_totals(req.entities, req.snapshots)

@router.post('/rankings/general-stats', tags=["Rankings"])
def rankings_general(req: SnapshotFeed):
    return general_stats(req.entities, req.snapshots)

@router.get(
    '/layout/{page}',
    summary="Get panel layout",
    description="Returns the persisted layout for dashboard|player, or registry defaults.",
    tags=["Layout"],
)
def layout_get(page: str):
    return _layout_payload(_store(page))

@router.post('/layout/{page}/toggle', tags=["Layout"])
def layout_toggle(page: str, req: ToggleRequest):
    store = _store(page)
    store.toggle(req.panel_id, req.enabled)
    return _layout_payload(store)

@router.post('/layout/{page}/reorder', tags=["Layout"])
def layout_reorder(page: str, req: ReorderRequest):
    store = _store(page)
    store.reorder(req.order)
    return _layout_payload(store)

@router.post('/layout/{page}/resize', tags=["Layout"])
def layout_resize(page: str, req: ResizeRequest):
    store = _store(page)
    store.resize(req.panel_id, x=req.x, y=req.y, w=req.w, h=req.h)
    return _layout_payload(store)

@router.post('/layout/{page}/reset', tags=["Layout"])
def layout_reset(page: str):
    store = _store(page)
    store.reset()
    return _layout_payload(store)

@router.post(
    '/layout/{page}/pack',
    summary="Pack enabled panels",
    description="Masonry positions for the enabled panels given measured heights.",
    tags=["Layout"],
)
def layout_pack(page: str, req: PackRequest):
    store = _store(page)
    panel_ids = [item.id for item in store.enabled_items()]
    result = pack(panel_ids, req.heights, req.columns, container_width=req.container_width, gap=req.gap)
    return {'page': page, 'order': panel_ids, **result.to_dict()}

"""Print the activity feed and period deltas for a JSON export.

The file holds {"entities": [{"id", "name"}], "snapshots": {entity_id: [...]}}.
"""
from pathlib import Path
import argparse
import json
import os
import sys

# Ensure repo root is on sys.path and is the working directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

from skilltrack.logging import setup_logging
from skilltrack.pipeline.events import detect_events, recent_events
from skilltrack.pipeline.periods import compute_delta


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument('path', help='JSON export with entities and snapshots')
    ap.add_argument('--period', default='weekly', help='daily|weekly|monthly|yearly')
    ap.add_argument('--metric', default='experience', help='experience|level')
    ap.add_argument('--limit', type=int, default=25)
    args = ap.parse_args()

    setup_logging()
    payload = json.loads(Path(args.path).read_text(encoding='utf-8'))
    entities = payload.get('entities') or []
    snapshots = payload.get('snapshots') or {}

    print('Recent activity')
    for event in recent_events(detect_events(entities, snapshots), args.limit):
        print(f"  {event.occurred_at.isoformat()}  {event.entity_name}: {event.description}")

    print(f'{args.metric} gained ({args.period})')
    for row in compute_delta(entities, snapshots, args.period, metric=args.metric):
        print(f"  {row.entity.name}: {row.total}")


if __name__ == '__main__':
    main()

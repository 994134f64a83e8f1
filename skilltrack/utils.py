import math
from datetime import datetime, date, time, timezone
from dateutil import tz, parser as date_parser

def now_utc() -> datetime:
    return datetime.now(timezone.utc)

def now_utc_iso() -> str:
    return now_utc().isoformat()

def ensure_utc(dt: datetime) -> datetime:
    # Naive datetimes are treated as UTC.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def parse_timestamp(value) -> datetime | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return ensure_utc(date_parser.isoparse(text))
    except (ValueError, OverflowError):
        pass
    try:
        return ensure_utc(date_parser.parse(text))
    except (ValueError, OverflowError):
        return None

def epoch_ms(dt: datetime) -> int:
    return int(round(ensure_utc(dt).timestamp() * 1000))

def as_int(value, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(num):
        return default
    return int(num)

def start_of_local_day(now: datetime, tz_name: str) -> datetime:
    zone = tz.gettz(tz_name) or timezone.utc
    local_date = ensure_utc(now).astimezone(zone).date()
    midnight = tz.resolve_imaginary(datetime.combine(local_date, time.min, tzinfo=zone))
    return midnight.astimezone(timezone.utc)

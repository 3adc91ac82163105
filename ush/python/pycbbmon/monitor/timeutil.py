from datetime import datetime, timezone

# CloudBerry stores every timestamp in the history database as fixed-width
# UTC text, e.g. "20240101020000".
CBB_TIME_FORMAT = "%Y%m%d%H%M%S"


def parse_cbb_time(ts: str) -> datetime:
    """Convert 'YYYYMMDDHHMMSS' (UTC) → aware datetime."""
    ts = str(ts)
    if len(ts) != 14 or not ts.isdigit():
        raise ValueError(f"Invalid CloudBerry timestamp '{ts}'")
    return datetime.strptime(ts, CBB_TIME_FORMAT).replace(tzinfo=timezone.utc)


def format_cbb_time(dt: datetime) -> str:
    """Convert a datetime → 'YYYYMMDDHHMMSS' (UTC). Naive values are taken as UTC."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime(CBB_TIME_FORMAT)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]

ONE_MILLISECOND = timedelta(milliseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def next_timestamp(now: datetime, previous: Optional[str]) -> str:
    """``max(now, previous + 1ms)`` as an ISO string; keeps a log ordered under clock skew."""
    now = now.astimezone(timezone.utc).replace(microsecond=now.microsecond // 1000 * 1000)
    if previous:
        floor = from_iso(previous) + ONE_MILLISECOND
        if now < floor:
            now = floor
    return to_iso(now)

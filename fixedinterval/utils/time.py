from __future__ import annotations
import datetime as dt
import time
import pytz

UTC = pytz.UTC


def now_ms() -> float:
    return time.time() * 1000.0


def get_zone(name: str) -> dt.tzinfo:
    return pytz.timezone(name)


def from_ms(ts_ms: float, tz: dt.tzinfo = UTC) -> dt.datetime:
    return dt.datetime.fromtimestamp(ts_ms / 1000.0, tz=UTC).astimezone(tz)


def fmt_ms(ts_ms: float, tz: dt.tzinfo = UTC) -> str:
    return from_ms(ts_ms, tz).isoformat(timespec="milliseconds")

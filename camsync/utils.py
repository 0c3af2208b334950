from __future__ import annotations
import math
from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


def safe_str(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(number):
        return None
    return number


def valid_coordinates(lat: Optional[float], lon: Optional[float]) -> bool:
    """True for a finite, in-range pair that is not the (0, 0) placeholder."""
    if lat is None or lon is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return False
    return not (lat == 0.0 and lon == 0.0)

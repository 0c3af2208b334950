"""
Normalization of raw feed records into CameraRecord values.

Severity and trend are derived from the description and status text with
ordered keyword rules. The first rule whose keywords appear in the text wins,
so a record mentioning both "crash" and "heavy traffic" is always critical.
"""
from __future__ import annotations
import hashlib
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from camsync.parser import RawFeedRecord
from camsync.schemas import CameraRecord
from camsync.utils import now_utc, safe_str, valid_coordinates

logger = logging.getLogger(__name__)


DEFAULT_NAME = "Surveillance Node"
DEFAULT_DESCRIPTION = "Live matrix uplink"
DEFAULT_REGION = "NZ Sector"
DEFAULT_DIRECTION = "N/A"
DEFAULT_STATUS = "Operational"

SEVERITY_RULES: Sequence[Tuple[str, Tuple[str, ...]]] = (
    ("critical", ("closed", "closure", "blocked", "crash", "collision", "accident")),
    ("high", ("heavy", "congest", "queue", "incident", "delay")),
    ("medium", ("construction", "roadworks", "road works", "maintenance", "slow", "moderate")),
)
TREND_RULES: Sequence[Tuple[str, Tuple[str, ...]]] = (
    ("improving", ("clearing", "cleared", "improving", "easing", "reopened")),
    ("escalating", ("worsening", "increasing", "building", "closed", "blocked", "crash")),
)

PATH_CONFIDENCE = {"nested": 95, "flat": 90, "alternate": 80}
DEFAULTED_FIELD_PENALTY = 4
MISSING_IMAGE_PENALTY = 5

ABSOLUTE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
NUMERIC_IMAGE_RE = re.compile(r"^\d+\.[A-Za-z0-9]+$")


@dataclass(frozen=True)
class FeedContext:
    base_url: str = "https://trafficnz.info"
    image_path_prefix: str = "/camera/images/"
    default_image_path: str = "/camera/images/"
    synced_at: datetime = field(default_factory=now_utc)


def _classify(text: str, rules, default: str) -> str:
    lowered = text.lower()
    for label, keywords in rules:
        if any(keyword in lowered for keyword in keywords):
            return label
    return default


def classify_severity(description: str, status: str) -> str:
    return _classify(f"{description} {status}", SEVERITY_RULES, "low")


def classify_trend(description: str, status: str) -> str:
    return _classify(f"{description} {status}", TREND_RULES, "stable")


def canonicalize_image_url(value: Optional[str], ctx: FeedContext) -> Optional[str]:
    ref = safe_str(value)
    if not ref:
        return None
    base = ctx.base_url.rstrip("/")
    if ABSOLUTE_URL_RE.match(ref):
        return ref
    if ref.startswith("/"):
        return f"{base}{ref}"
    if NUMERIC_IMAGE_RE.match(ref):
        return f"{base}{ctx.image_path_prefix}{ref}"
    return f"{base}{ctx.default_image_path}{ref}"


def compute_confidence(raw: RawFeedRecord) -> int:
    score = PATH_CONFIDENCE.get(raw.coordinate_path, 70)
    defaulted = [
        name for name in ("id", "name", "description", "region", "direction", "status")
        if not getattr(raw, name)
    ]
    score -= DEFAULTED_FIELD_PENALTY * len(defaulted)
    if not raw.image_ref:
        score -= MISSING_IMAGE_PENALTY
    return max(0, min(100, score))


def generate_camera_id(name: str, lat: float, lon: float) -> str:
    digest = hashlib.sha1(f"{name}|{lat:.6f}|{lon:.6f}".encode("utf-8")).hexdigest()
    return f"node-{digest[:8]}"


def normalize_camera(raw: RawFeedRecord, ctx: FeedContext) -> Optional[CameraRecord]:
    """Map one raw record to a CameraRecord, or None when its coordinates are unusable."""
    if not valid_coordinates(raw.latitude, raw.longitude):
        return None

    name = safe_str(raw.name) or DEFAULT_NAME
    description = safe_str(raw.description) or DEFAULT_DESCRIPTION
    status = safe_str(raw.status) or DEFAULT_STATUS

    return CameraRecord(
        id=safe_str(raw.id) or generate_camera_id(name, raw.latitude, raw.longitude),
        name=name,
        description=description,
        image_url=canonicalize_image_url(raw.image_ref, ctx),
        region=safe_str(raw.region) or DEFAULT_REGION,
        latitude=raw.latitude,
        longitude=raw.longitude,
        direction=safe_str(raw.direction) or DEFAULT_DIRECTION,
        status=status,
        source="live",
        severity=classify_severity(description, status),
        trend=classify_trend(description, status),
        confidence=compute_confidence(raw),
        last_update=ctx.synced_at,
    )


def normalize_feed(records: Iterable[RawFeedRecord], ctx: FeedContext) -> List[CameraRecord]:
    """Normalize a batch, dropping unusable records and keeping ids unique."""
    cameras: List[CameraRecord] = []
    seen = {}
    dropped = 0
    for raw in records:
        camera = normalize_camera(raw, ctx)
        if camera is None:
            dropped += 1
            continue
        count = seen.get(camera.id, 0)
        seen[camera.id] = count + 1
        if count:
            unique_id = f"{camera.id}-{count + 1}"
            while unique_id in seen:
                count += 1
                unique_id = f"{camera.id}-{count + 1}"
            seen[unique_id] = 1
            camera = camera.model_copy(update={"id": unique_id})
        cameras.append(camera)
    if dropped:
        logger.info(f"Dropped {dropped} camera record(s) without usable coordinates")
    return cameras

"""Fixed camera set served when no relay produces a usable feed."""
from __future__ import annotations
from typing import FrozenSet, List, Tuple

from camsync.schemas import CameraRecord
from camsync.utils import now_utc


_BUILT_AT = now_utc()


def _fallback(**fields) -> CameraRecord:
    return CameraRecord(
        source="fallback",
        status="Operational",
        severity="low",
        trend="stable",
        confidence=98,
        last_update=_BUILT_AT,
        **fields,
    )


FALLBACK_CAMERAS: Tuple[CameraRecord, ...] = (
    _fallback(
        id="FB-AKL-01",
        name="SH1: Oteha Valley Rd",
        description="Northbound coverage",
        image_url="https://www.trafficnz.info/camera/images/20.jpg",
        region="Auckland",
        latitude=-36.723,
        longitude=174.706,
        direction="North",
        journey_legs=("Auckland - North",),
    ),
    _fallback(
        id="FB-AKL-02",
        name="SH1: Harbour Bridge",
        description="Auckland Harbour Bridge approaches",
        image_url="https://www.trafficnz.info/camera/images/24.jpg",
        region="Auckland",
        latitude=-36.8307,
        longitude=174.7462,
        direction="South",
        journey_legs=("Auckland - North", "Auckland - Central"),
    ),
    _fallback(
        id="FB-WLG-01",
        name="SH1: Terrace Tunnel",
        description="Wellington urban motorway",
        image_url="https://www.trafficnz.info/camera/images/650.jpg",
        region="Wellington",
        latitude=-41.2866,
        longitude=174.7689,
        direction="North",
        journey_legs=("Wellington - Central",),
    ),
    _fallback(
        id="FB-CHC-01",
        name="SH76: Brougham St",
        description="Christchurch southern corridor",
        image_url="https://www.trafficnz.info/camera/images/1012.jpg",
        region="Canterbury",
        latitude=-43.5507,
        longitude=172.6405,
        direction="East",
        journey_legs=("Christchurch - South",),
    ),
)


def fallback_cameras() -> List[CameraRecord]:
    return list(FALLBACK_CAMERAS)


def fallback_ids() -> FrozenSet[str]:
    return frozenset(camera.id for camera in FALLBACK_CAMERAS)

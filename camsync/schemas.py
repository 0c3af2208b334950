from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


Severity = Literal["low", "medium", "high", "critical"]
Trend = Literal["improving", "stable", "escalating"]
Provenance = Literal["live", "fallback"]
ErrorKind = Literal["transport", "timeout", "envelope", "validation", "parse", "unexpected"]


class EnvelopeKind(str, Enum):
    DIRECT = "direct"
    JSON = "json"


class Endpoint(BaseModel):
    """One relay through which the feed document may be retrieved."""

    model_config = ConfigDict(frozen=True)

    name: str
    template: str = Field(..., description="Address template containing a '{url}' placeholder")
    envelope: EnvelopeKind = EnvelopeKind.DIRECT
    encode_target: bool = False

    @field_validator("template")
    @classmethod
    def _has_placeholder(cls, value: str) -> str:
        if "{url}" not in value:
            raise ValueError("endpoint template must contain '{url}'")
        return value


class CameraRecord(BaseModel):
    """Normalized traffic camera handed to collaborators."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    description: str
    image_url: Optional[str] = None
    region: str
    latitude: float = Field(..., ge=-90.0, le=90.0, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180.0, le=180.0, allow_inf_nan=False)
    direction: str
    status: str
    camera_type: str = "feed"
    journey_legs: Tuple[str, ...] = ()
    source: Provenance
    severity: Severity
    trend: Trend
    confidence: int = Field(..., ge=0, le=100)
    last_update: datetime


class AttemptReport(BaseModel):
    endpoint: str
    ok: bool
    error_kind: Optional[ErrorKind] = None
    detail: Optional[str] = None
    record_count: int = 0
    elapsed_ms: float = 0.0


class SyncResult(BaseModel):
    cameras: List[CameraRecord]
    outcome: Provenance
    endpoint: Optional[str] = None
    attempts: List[AttemptReport] = Field(default_factory=list)
    started_at: datetime
    finished_at: datetime


class SyncSummary(BaseModel):
    outcome: Provenance
    endpoint: Optional[str] = None
    camera_count: int
    attempts: List[AttemptReport]
    started_at: datetime
    finished_at: datetime

    @classmethod
    def from_result(cls, result: SyncResult) -> "SyncSummary":
        return cls(
            outcome=result.outcome,
            endpoint=result.endpoint,
            camera_count=len(result.cameras),
            attempts=result.attempts,
            started_at=result.started_at,
            finished_at=result.finished_at,
        )


class CameraListResponse(BaseModel):
    count: int
    outcome: Provenance
    last_sync: datetime
    cameras: List[CameraRecord]


class HealthResponse(BaseModel):
    status: str
    version: str


class RegionCount(BaseModel):
    region: str
    count: int


class RegionsResponse(BaseModel):
    total: int
    under_construction: int
    outcome: Provenance
    regions: List[RegionCount]

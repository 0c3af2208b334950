from collections import Counter

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from camsync import __version__
from camsync.schemas import (
    CameraListResponse,
    CameraRecord,
    HealthResponse,
    RegionCount,
    RegionsResponse,
    SyncSummary,
)
from camsync.service import SyncService

router = APIRouter()


def get_service(request: Request) -> SyncService:
    return request.app.state.service


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", version=__version__)


@router.get("/cameras", response_model=CameraListResponse)
async def list_cameras(
    q: str = Query(default=None, description="Substring of the camera name or region"),
    region: str = Query(default=None),
    severity: str = Query(default=None),
    source: str = Query(default=None),
    limit: int = Query(default=500, ge=1, le=5000),
    service: SyncService = Depends(get_service),
):
    result = await service.current()
    cameras = result.cameras
    if q:
        needle = q.lower()
        cameras = [c for c in cameras if needle in c.name.lower() or needle in c.region.lower()]
    if region:
        cameras = [c for c in cameras if c.region.lower() == region.lower()]
    if severity:
        cameras = [c for c in cameras if c.severity == severity]
    if source:
        cameras = [c for c in cameras if c.source == source]
    cameras = cameras[:limit]
    return CameraListResponse(
        count=len(cameras),
        outcome=result.outcome,
        last_sync=result.finished_at,
        cameras=cameras,
    )


@router.get("/cameras/{camera_id}", response_model=CameraRecord)
async def get_camera(camera_id: str, service: SyncService = Depends(get_service)):
    result = await service.current()
    for camera in result.cameras:
        if camera.id == camera_id:
            return camera
    raise HTTPException(status_code=404, detail="Camera not found")


def is_under_construction(camera: CameraRecord) -> bool:
    status = camera.status.lower()
    return "construction" in status or status == "testing"


@router.get("/regions", response_model=RegionsResponse)
async def list_regions(service: SyncService = Depends(get_service)):
    result = await service.current()
    counts = Counter(c.region for c in result.cameras if c.region)
    return RegionsResponse(
        total=len(result.cameras),
        under_construction=sum(1 for c in result.cameras if is_under_construction(c)),
        outcome=result.outcome,
        regions=[RegionCount(region=name, count=counts[name]) for name in sorted(counts)],
    )


@router.post("/sync", response_model=SyncSummary)
async def trigger_sync(service: SyncService = Depends(get_service)):
    result = await service.refresh()
    return SyncSummary.from_result(result)


@router.get("/sync/status", response_model=SyncSummary)
def sync_status(service: SyncService = Depends(get_service)):
    result = service.last_result
    if result is None:
        raise HTTPException(status_code=404, detail="No sync cycle has completed yet")
    return SyncSummary.from_result(result)

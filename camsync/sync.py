"""
Sync cycle orchestration.

One cycle walks the endpoint registry in order::

    IDLE -> TRYING_ENDPOINT(i) -> PARSED_NON_EMPTY              (done, live result)
                               -> SOFT_FAIL -> TRYING_ENDPOINT(i+1)
                               ...
         -> EXHAUSTED -> FALLBACK_RETURNED                      (done, fallback)

Every failure inside an attempt is soft: it is recorded in an AttemptReport
and the next endpoint is tried. ``run_cycle`` never raises.
"""
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import List, Optional, Protocol, Tuple

from camsync.endpoints import EndpointRegistry, build_address
from camsync.envelope import unwrap
from camsync.errors import UNEXPECTED_KIND, FeedParseError, SyncError
from camsync.fallback import fallback_cameras
from camsync.fetcher import FetchedPayload
from camsync.normalizers import FeedContext, normalize_feed
from camsync.parser import parse_feed
from camsync.schemas import AttemptReport, CameraRecord, Endpoint, SyncResult
from camsync.utils import now_utc
from camsync.validation import validate_document

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    IDLE = "idle"
    TRYING_ENDPOINT = "trying_endpoint"
    PARSED_NON_EMPTY = "parsed_non_empty"
    SOFT_FAIL = "soft_fail"
    EXHAUSTED = "exhausted"
    FALLBACK_RETURNED = "fallback_returned"


class Fetcher(Protocol):
    async def fetch(self, address: str) -> FetchedPayload: ...


class SyncOrchestrator:
    def __init__(
        self,
        registry: EndpointRegistry,
        fetcher: Fetcher,
        feed_url: str,
        base_url: str = "https://trafficnz.info",
        image_path_prefix: str = "/camera/images/",
        default_image_path: str = "/camera/images/",
    ) -> None:
        self.registry = registry
        self.fetcher = fetcher
        self.feed_url = feed_url
        self.base_url = base_url
        self.image_path_prefix = image_path_prefix
        self.default_image_path = default_image_path
        self.state = SyncState.IDLE
        self.history: List[Tuple[SyncState, Optional[str]]] = []

    def _enter(self, state: SyncState, endpoint: Optional[str] = None) -> None:
        self.state = state
        self.history.append((state, endpoint))
        logger.debug(f"sync state -> {state.value}" + (f" ({endpoint})" if endpoint else ""))

    async def _attempt(self, endpoint: Endpoint, ctx: FeedContext) -> List[CameraRecord]:
        payload = await self.fetcher.fetch(build_address(endpoint, self.feed_url))
        document = validate_document(unwrap(payload.text, endpoint.envelope))
        parsed = parse_feed(document)
        if not parsed.well_formed:
            raise FeedParseError("Feed document is not well-formed XML")
        cameras = normalize_feed(parsed.records, ctx)
        if not cameras:
            raise FeedParseError(f"No usable cameras among {len(parsed.records)} parsed record(s)")
        return cameras

    async def run_cycle(self) -> SyncResult:
        started_at = now_utc()
        self.history = []
        self._enter(SyncState.IDLE)
        ctx = FeedContext(
            base_url=self.base_url,
            image_path_prefix=self.image_path_prefix,
            default_image_path=self.default_image_path,
            synced_at=started_at,
        )
        attempts: List[AttemptReport] = []

        for endpoint in self.registry:
            self._enter(SyncState.TRYING_ENDPOINT, endpoint.name)
            t0 = time.monotonic()
            try:
                cameras = await self._attempt(endpoint, ctx)
            except SyncError as e:
                attempts.append(AttemptReport(
                    endpoint=endpoint.name,
                    ok=False,
                    error_kind=e.kind,
                    detail=str(e),
                    elapsed_ms=(time.monotonic() - t0) * 1000,
                ))
                logger.warning(f"Uplink via {endpoint.name} failed ({e.kind}): {e}. Trying next...")
                self._enter(SyncState.SOFT_FAIL, endpoint.name)
                continue
            except Exception as e:
                attempts.append(AttemptReport(
                    endpoint=endpoint.name,
                    ok=False,
                    error_kind=UNEXPECTED_KIND,
                    detail=repr(e),
                    elapsed_ms=(time.monotonic() - t0) * 1000,
                ))
                logger.exception(f"Unexpected error during uplink via {endpoint.name}")
                self._enter(SyncState.SOFT_FAIL, endpoint.name)
                continue

            attempts.append(AttemptReport(
                endpoint=endpoint.name,
                ok=True,
                record_count=len(cameras),
                elapsed_ms=(time.monotonic() - t0) * 1000,
            ))
            self._enter(SyncState.PARSED_NON_EMPTY, endpoint.name)
            logger.info(f"Synced {len(cameras)} cameras via {endpoint.name}")
            return SyncResult(
                cameras=cameras,
                outcome="live",
                endpoint=endpoint.name,
                attempts=attempts,
                started_at=started_at,
                finished_at=now_utc(),
            )

        self._enter(SyncState.EXHAUSTED)
        logger.warning(f"All {len(self.registry)} endpoints failed; serving fallback catalog")
        self._enter(SyncState.FALLBACK_RETURNED)
        return SyncResult(
            cameras=fallback_cameras(),
            outcome="fallback",
            endpoint=None,
            attempts=attempts,
            started_at=started_at,
            finished_at=now_utc(),
        )

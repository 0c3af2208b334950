"""
Ordered registry of relay endpoints for the camera feed.

Order encodes preference: every sync cycle starts at the first endpoint and
walks down the list. The registry is never reordered at runtime.
"""
from __future__ import annotations
from typing import Iterable, Iterator, Optional, Tuple
from urllib.parse import quote

from camsync.schemas import Endpoint, EnvelopeKind


DEFAULT_ENDPOINTS: Tuple[Endpoint, ...] = (
    Endpoint(name="origin", template="{url}", envelope=EnvelopeKind.DIRECT),
    Endpoint(name="corsproxy", template="https://corsproxy.io/?{url}", envelope=EnvelopeKind.DIRECT),
    Endpoint(
        name="codetabs",
        template="https://api.codetabs.com/v1/proxy?quest={url}",
        envelope=EnvelopeKind.DIRECT,
        encode_target=True,
    ),
    Endpoint(
        name="allorigins",
        template="https://api.allorigins.win/get?url={url}",
        envelope=EnvelopeKind.JSON,
        encode_target=True,
    ),
)


def build_address(endpoint: Endpoint, feed_url: str) -> str:
    target = quote(feed_url, safe="") if endpoint.encode_target else feed_url
    return endpoint.template.replace("{url}", target)


class EndpointRegistry:
    def __init__(self, endpoints: Iterable[Endpoint] = DEFAULT_ENDPOINTS):
        self._endpoints: Tuple[Endpoint, ...] = tuple(endpoints)
        if not self._endpoints:
            raise ValueError("EndpointRegistry requires at least one endpoint")
        names = [e.name for e in self._endpoints]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate endpoint names: {names}")

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def __getitem__(self, index: int) -> Endpoint:
        return self._endpoints[index]

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(e.name for e in self._endpoints)

    def get(self, name: str) -> Optional[Endpoint]:
        for endpoint in self._endpoints:
            if endpoint.name == name:
                return endpoint
        return None

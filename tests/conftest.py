import asyncio

import pytest

from camsync.endpoints import EndpointRegistry
from camsync.errors import TransportError
from camsync.fetcher import FetchedPayload
from camsync.normalizers import FeedContext
from camsync.schemas import Endpoint, EnvelopeKind

FEED_URL = "https://feed.test/cameras/all"
BASE_URL = "https://feed.test"

NESTED_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<response xmlns="https://feed.test/schemas/camera">
  <camera>
    <id>20</id>
    <name>SH1: Oteha Valley Rd</name>
    <description>Northbound heavy traffic</description>
    <imageUrl>20.jpg</imageUrl>
    <region>Auckland</region>
    <direction>North</direction>
    <status>Operational</status>
    <location><latitude>-36.8</latitude><longitude>174.7</longitude></location>
  </camera>
  <camera>
    <id>24</id>
    <name>SH1: Harbour Bridge</name>
    <description>Traffic clearing after earlier crash</description>
    <imageUrl>/camera/images/24.jpg</imageUrl>
    <region>Auckland</region>
    <direction>South</direction>
    <status>Operational</status>
    <location><latitude>-36.83</latitude><longitude>174.746</longitude></location>
  </camera>
</response>
"""

FLAT_FEED = """<cameras>
  <trafficCamera>
    <id>20</id>
    <name>SH1: Oteha Valley Rd</name>
    <description>Northbound heavy traffic</description>
    <url>20.jpg</url>
    <region>Auckland</region>
    <direction>North</direction>
    <status>Operational</status>
    <latitude>-36.8</latitude>
    <longitude>174.7</longitude>
  </trafficCamera>
</cameras>
"""

NO_COORDINATES_FEED = """<cameras>
  <camera><id>1</id><name>Nowhere</name><latitude>0</latitude><longitude>0</longitude></camera>
  <camera><id>2</id><name>Half</name><latitude>-41.2</latitude></camera>
</cameras>
"""

HTML_ERROR_PAGE = "<!DOCTYPE html><html><body>502 Bad Gateway</body></html>"


class FakeFetcher:
    """Routes addresses to canned bodies or exceptions by substring."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    async def fetch(self, address):
        self.calls.append(address)
        for marker, outcome in self.routes.items():
            if marker in address:
                if isinstance(outcome, Exception):
                    raise outcome
                return FetchedPayload(text=outcome, status_code=200)
        raise TransportError(f"Connection refused: {address}")


class GatedFetcher(FakeFetcher):
    """Blocks every fetch until ``release`` is set."""

    def __init__(self, routes=None):
        super().__init__(routes)
        self.release = asyncio.Event()

    async def fetch(self, address):
        await self.release.wait()
        return await super().fetch(address)


@pytest.fixture
def endpoints():
    return [
        Endpoint(name="alpha", template="https://alpha.test/?{url}"),
        Endpoint(name="beta", template="https://beta.test/raw?quest={url}", encode_target=True),
        Endpoint(name="gamma", template="https://gamma.test/get?url={url}", envelope=EnvelopeKind.JSON, encode_target=True),
    ]


@pytest.fixture
def registry(endpoints):
    return EndpointRegistry(endpoints)


@pytest.fixture
def ctx():
    return FeedContext(base_url=BASE_URL)

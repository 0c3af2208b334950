"""
Feed document parsing.

Two producer schemas are accepted. Current producers nest coordinates under
a ``<location>`` element; legacy producers emit ``<latitude>``/``<longitude>``
(or ``<lat>``/``<long>``) as direct children of the camera element.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
from xml.etree import ElementTree

from camsync.utils import parse_float, safe_str

logger = logging.getLogger(__name__)

RECORD_TAGS = frozenset({"camera", "trafficCamera"})

# (path, coordinate_path label), tried in order
LATITUDE_PATHS: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("location", "latitude"), "nested"),
    (("latitude",), "flat"),
    (("lat",), "alternate"),
)
LONGITUDE_PATHS: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("location", "longitude"), "nested"),
    (("longitude",), "flat"),
    (("long",), "alternate"),
)
IMAGE_TAGS = ("imageUrl", "url")


@dataclass
class RawFeedRecord:
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    image_ref: Optional[str] = None
    region: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    direction: Optional[str] = None
    status: Optional[str] = None
    coordinate_path: Optional[str] = None


@dataclass
class ParseResult:
    records: List[RawFeedRecord] = field(default_factory=list)
    well_formed: bool = True


def _local(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _child(element: ElementTree.Element, name: str) -> Optional[ElementTree.Element]:
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _text_at(element: ElementTree.Element, path: Tuple[str, ...]) -> Optional[str]:
    node = element
    for name in path:
        node = _child(node, name)
        if node is None:
            return None
    return safe_str(node.text) or None


def _first_text(element: ElementTree.Element, *names: str) -> Optional[str]:
    for name in names:
        value = _text_at(element, (name,))
        if value:
            return value
    return None


def _resolve_coordinate(element, paths) -> Tuple[Optional[float], Optional[str]]:
    for path, label in paths:
        value = parse_float(_text_at(element, path))
        if value is not None:
            return value, label
    return None, None


def _worst_path(*labels: Optional[str]) -> Optional[str]:
    order = ("nested", "flat", "alternate")
    if any(label is None for label in labels):
        return None
    return max(labels, key=order.index)


def parse_record(element: ElementTree.Element) -> RawFeedRecord:
    lat, lat_path = _resolve_coordinate(element, LATITUDE_PATHS)
    lon, lon_path = _resolve_coordinate(element, LONGITUDE_PATHS)
    return RawFeedRecord(
        id=_first_text(element, "id"),
        name=_first_text(element, "name"),
        description=_first_text(element, "description"),
        image_ref=_first_text(element, *IMAGE_TAGS),
        region=_first_text(element, "region"),
        latitude=lat,
        longitude=lon,
        direction=_first_text(element, "direction"),
        status=_first_text(element, "status"),
        coordinate_path=_worst_path(lat_path, lon_path),
    )


def parse_feed(document) -> ParseResult:
    """Parse a feed document into raw camera records.

    Never raises: an unparseable document yields an empty, not-well-formed
    result.
    """
    try:
        root = ElementTree.fromstring(document)
    except (ElementTree.ParseError, ValueError, TypeError) as e:
        logger.warning(f"Feed document is malformed: {e}")
        return ParseResult(records=[], well_formed=False)

    records = [parse_record(el) for el in root.iter() if _local(el.tag) in RECORD_TAGS]
    logger.debug(f"Parsed {len(records)} camera elements")
    return ParseResult(records=records, well_formed=True)

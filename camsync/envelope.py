from __future__ import annotations
import json

from camsync.errors import EnvelopeError
from camsync.schemas import EnvelopeKind


CONTENTS_FIELD = "contents"


def unwrap(payload: str, kind: EnvelopeKind, field: str = CONTENTS_FIELD) -> str:
    """Return the feed document carried by a relay response body."""
    if kind is EnvelopeKind.DIRECT:
        return payload

    try:
        data = json.loads(payload)
    except (ValueError, TypeError) as e:
        raise EnvelopeError(f"Envelope is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise EnvelopeError(f"Envelope must be a JSON object, got {type(data).__name__}")

    # allorigins-style relays report the upstream status alongside the body
    status = data.get("status")
    if isinstance(status, dict):
        http_code = status.get("http_code")
        if isinstance(http_code, int) and http_code >= 400:
            raise EnvelopeError(f"Relay reports upstream status {http_code}")

    contents = data.get(field)
    if not isinstance(contents, str):
        raise EnvelopeError(f"Envelope field '{field}' is missing or not text")
    return contents

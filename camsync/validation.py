from __future__ import annotations

from camsync.errors import ResponseValidationError


HTML_SIGNATURES = ("<!doctype html", "<html")


def validate_document(text: str) -> str:
    """Reject relay error pages and other non-XML bodies.

    Returns the document with any BOM and leading whitespace removed.
    """
    document = (text or "").lstrip("\ufeff \t\r\n")
    if not document:
        raise ResponseValidationError("Empty document")
    head = document[:64].lower()
    if head.startswith(HTML_SIGNATURES):
        raise ResponseValidationError("Relay returned an HTML page instead of the feed")
    if not document.startswith("<"):
        raise ResponseValidationError(f"Not a markup document: {document[:40]!r}")
    return document

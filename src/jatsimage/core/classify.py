"""Detection of JATS XML galley files."""

from __future__ import annotations

JATS_MIMETYPES = frozenset({"application/xml", "text/xml", "application/jats+xml"})


def is_jats_file(mimetype: str | None, name: str | None) -> bool:
    """Return True if a file with this MIME type or name should be rewritten as XML."""
    if (mimetype or "") in JATS_MIMETYPES:
        return True
    return (name or "").lower().endswith(".xml")

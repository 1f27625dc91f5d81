"""Name-to-URL index: maps the spellings a document may use for a file to its URL."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from urllib.parse import quote

from jatsimage.core.models import EmbeddableFile

NameIndex = Mapping[str, str]


def encode_name(name: str) -> str:
    """Percent-encode a name as an RFC 3986 URI component (``/`` included)."""
    return quote(name, safe="")


def basename(name: str) -> str:
    """Return the last ``/``-separated segment of a name, ignoring trailing slashes."""
    return name.rstrip("/").rsplit("/", 1)[-1]


def name_variants(name: str) -> list[str]:
    """List the index keys registered for a file name.

    The raw name, its encoded form, its basename and the encoded basename,
    each followed by its lower-cased form.
    """
    base = basename(name)
    variants = []
    for candidate in (name, encode_name(name), base, encode_name(base)):
        variants.append(candidate)
        variants.append(candidate.lower())
    return variants


def build_name_index(files: Iterable[EmbeddableFile]) -> NameIndex:
    """Build a read-only lookup of file name spellings to download URLs.

    Files without a name are skipped. When two files share a key (for
    example the same basename in different folders) the file that comes
    later in ``files`` wins.
    """
    index: dict[str, str] = {}
    for file in files:
        if not file.name:
            continue
        for key in name_variants(file.name):
            index[key] = file.url
    return MappingProxyType(index)

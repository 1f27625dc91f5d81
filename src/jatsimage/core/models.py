"""Domain models for jatsimage."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class HrefSlot(str, Enum):
    """Attribute slot a graphic href is read from, in read priority order."""

    XLINK_NAMESPACED = "xlink_namespaced"
    XLINK_LITERAL = "xlink_literal"
    PLAIN = "plain"


class FileStage(int, Enum):
    """Submission file stages relevant to galley downloads."""

    PROOF = 10
    DEPENDENT = 17


class EmbeddableFile(BaseModel):
    """A file attached to the galley that the XML may reference."""

    name: str = Field(default="", description="Display name, possibly with a path")
    url: str = Field(description="Resolved download URL")
    mime_type: str = Field(default="", description="MIME type of the file")


class GraphicReference(BaseModel):
    """The href of one graphic element and the slot it was read from."""

    slot: HrefSlot
    value: str


class ResolveResult(BaseModel):
    """Outcome of resolving an href against a name index."""

    found: bool = Field(description="Whether any candidate matched")
    url: str | None = Field(default=None, description="Resolved URL when found")
    matched_key: str | None = Field(default=None, description="Index key that matched")

    @classmethod
    def not_found(cls) -> ResolveResult:
        return cls(found=False)


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing document bytes; ``tree`` is None on failure.

    ``recovered`` is set when the document only parsed after tolerating
    undeclared namespace prefixes.
    """

    tree: Any = None
    error: str | None = None
    recovered: bool = False

    @property
    def ok(self) -> bool:
        return self.tree is not None


class RewriteResult(BaseModel):
    """Serialized document plus counts from a rewrite pass."""

    content: bytes = Field(description="Output document bytes")
    parsed: bool = Field(default=False, description="Whether the input parsed as XML")
    references: int = Field(default=0, description="Graphic elements with an href")
    rewritten: int = Field(default=0, description="Hrefs replaced with a URL")


class SubmissionFile(BaseModel):
    """A stored submission file as seen by the host."""

    id: int
    name: str = Field(default="", description="Localized file name")
    mimetype: str = Field(default="")
    path: str = Field(default="", description="Storage path relative to the files directory")
    file_stage: int = Field(default=FileStage.PROOF.value)
    assoc_id: int | None = Field(
        default=None, description="Submission file this one depends on"
    )


class Article(BaseModel):
    """The submission a galley belongs to."""

    id: int
    best_id: str = Field(description="URL path or numeric ID used in links")
    context_id: int = Field(description="Journal the article belongs to")


class Galley(BaseModel):
    """A publication-ready rendition of an article."""

    id: int
    best_galley_id: str
    publication_id: int
    submission_file_id: int | None = None
    file: SubmissionFile | None = None


class Publication(BaseModel):
    """A publication version of an article."""

    id: int
    issue_id: int | None = None


class Issue(BaseModel):
    """A journal issue."""

    id: int
    journal_id: int


class UsageEvent(BaseModel):
    """A galley file download, recorded for usage statistics."""

    context_id: int
    submission_id: int
    galley_id: int
    submission_file_id: int
    issue_id: int | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class GalleyDownload(BaseModel):
    """Rewritten galley content ready to be streamed by the host."""

    content: bytes
    content_type: str = "application/xml; charset=utf-8"

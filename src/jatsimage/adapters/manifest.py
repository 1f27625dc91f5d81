"""YAML manifest of articles, galleys and submission files.

Stands in for the host's submission file and publication repositories
when running outside the host, e.g. from the CLI:

    articles:
      - {id: 1, best_id: "1", context_id: 1}
    publications:
      - {id: 3, issue_id: 2}
    issues:
      - {id: 2, journal_id: 1}
    galleys:
      - {id: 4, article_id: 1, best_galley_id: "4", publication_id: 3, submission_file_id: 10}
    files:
      - {id: 10, name: article.xml, mimetype: application/xml, path: article.xml}
      - {id: 11, name: fig1.png, mimetype: image/png, path: fig1.png,
         file_stage: 17, assoc_id: 10}
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from jatsimage.core.errors import ManifestError
from jatsimage.core.interfaces import PublicationRepositoryPort, SubmissionFileRepositoryPort
from jatsimage.core.models import (
    Article,
    FileStage,
    Galley,
    Issue,
    Publication,
    SubmissionFile,
)

logger = logging.getLogger(__name__)


class ManifestGalley(BaseModel):
    """Galley entry as written in the manifest."""

    id: int
    article_id: int
    best_galley_id: str
    publication_id: int
    submission_file_id: int | None = None


class Manifest(BaseModel):
    """Top-level manifest document."""

    articles: list[Article] = Field(default_factory=list)
    publications: list[Publication] = Field(default_factory=list)
    issues: list[Issue] = Field(default_factory=list)
    galleys: list[ManifestGalley] = Field(default_factory=list)
    files: list[SubmissionFile] = Field(default_factory=list)


def load_manifest(path: str) -> Manifest:
    """Load and validate a manifest from a YAML file.

    Raises:
        ManifestError: If the file is missing, unreadable, or invalid.
    """
    manifest_path = Path(path).expanduser()

    if not manifest_path.exists():
        raise ManifestError(f"Manifest file not found: {manifest_path}")

    try:
        raw = manifest_path.read_text()
    except OSError as e:
        raise ManifestError(f"Cannot read manifest file: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML in manifest file: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ManifestError("Manifest file must contain a YAML mapping")

    try:
        return Manifest(**data)
    except ValidationError as e:
        raise ManifestError(f"Invalid manifest: {e}") from e


class ManifestRepository(SubmissionFileRepositoryPort, PublicationRepositoryPort):
    """Serves submission file, galley and publication lookups from a manifest."""

    def __init__(self, manifest: Manifest) -> None:
        self._manifest = manifest
        self._files = {f.id: f for f in manifest.files}
        self._articles = {a.id: a for a in manifest.articles}
        self._galleys = {g.id: g for g in manifest.galleys}
        self._publications = {p.id: p for p in manifest.publications}
        self._issues = {i.id: i for i in manifest.issues}

    @classmethod
    def from_path(cls, path: str) -> ManifestRepository:
        """Create a repository from a manifest file."""
        return cls(load_manifest(path))

    def list_dependent_files(self, submission_file_id: int) -> list[SubmissionFile]:
        """List dependent-stage files associated with a submission file."""
        return [
            f
            for f in self._manifest.files
            if f.file_stage == FileStage.DEPENDENT.value and f.assoc_id == submission_file_id
        ]

    def get_file(self, file_id: int) -> SubmissionFile | None:
        """Get a submission file by ID."""
        return self._files.get(file_id)

    def get_publication(self, publication_id: int) -> Publication | None:
        """Get a publication by ID."""
        return self._publications.get(publication_id)

    def get_issue(self, issue_id: int) -> Issue | None:
        """Get an issue by ID."""
        return self._issues.get(issue_id)

    def get_galley(self, galley_id: int) -> tuple[Article, Galley]:
        """Get a galley, with its file attached, and the article it belongs to.

        Raises:
            ManifestError: If the galley or its article is not in the manifest.
        """
        entry = self._galleys.get(galley_id)
        if entry is None:
            raise ManifestError(f"Galley {galley_id} not found in manifest")

        article = self._articles.get(entry.article_id)
        if article is None:
            raise ManifestError(f"Article {entry.article_id} for galley {galley_id} not found")

        file = None
        if entry.submission_file_id is not None:
            file = self._files.get(entry.submission_file_id)
            if file is None:
                logger.warning(
                    "Galley %d references missing file %d", galley_id, entry.submission_file_id
                )

        galley = Galley(
            id=entry.id,
            best_galley_id=entry.best_galley_id,
            publication_id=entry.publication_id,
            submission_file_id=entry.submission_file_id,
            file=file,
        )
        return article, galley

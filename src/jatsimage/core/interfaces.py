"""Port interfaces for the host collaborators jatsimage consumes."""

from __future__ import annotations

from abc import ABC, abstractmethod

from jatsimage.core.models import Issue, Publication, SubmissionFile, UsageEvent


class FileStorePort(ABC):
    """Port for reading stored file contents."""

    @abstractmethod
    def read(self, path: str) -> bytes | None:
        """Read the raw bytes of a stored file.

        Args:
            path: Storage path of the file.

        Returns:
            File contents, or None if the file cannot be read.
        """


class SubmissionFileRepositoryPort(ABC):
    """Port for looking up submission files."""

    @abstractmethod
    def list_dependent_files(self, submission_file_id: int) -> list[SubmissionFile]:
        """List the dependent files attached to a submission file.

        Only files in the dependent stage whose association points at
        ``submission_file_id`` are returned.

        Args:
            submission_file_id: ID of the XML galley file.

        Returns:
            Dependent files in repository order.
        """


class PublicationRepositoryPort(ABC):
    """Port for publication and issue lookups."""

    @abstractmethod
    def get_publication(self, publication_id: int) -> Publication | None:
        """Get a publication by ID, or None if unknown."""

    @abstractmethod
    def get_issue(self, issue_id: int) -> Issue | None:
        """Get an issue by ID, or None if unknown."""


class UrlBuilderPort(ABC):
    """Port for building galley file download URLs."""

    @abstractmethod
    def build_download_url(
        self,
        article_id: str,
        publication_id: int,
        galley_id: str,
        file_id: int,
        file_name: str,
        params: dict[str, str] | None = None,
    ) -> str:
        """Build the download URL for a file attached to a galley.

        Args:
            article_id: Best ID (path or numeric) of the article.
            publication_id: Publication the galley belongs to.
            galley_id: Best ID (path or numeric) of the galley.
            file_id: Submission file ID to download.
            file_name: File name appended to the URL path.
            params: Optional query parameters.

        Returns:
            Absolute download URL.
        """


class UsageEventPort(ABC):
    """Port for recording usage events."""

    @abstractmethod
    def emit(self, event: UsageEvent) -> None:
        """Record a usage event.

        Args:
            event: The download to record.
        """

"""Galley download plugin: serves JATS XML with graphic hrefs pointing at file URLs."""

from __future__ import annotations

import logging

from jatsimage.container import Container
from jatsimage.core.classify import is_jats_file
from jatsimage.core.errors import JatsImageError, redact_error
from jatsimage.core.models import (
    Article,
    EmbeddableFile,
    Galley,
    GalleyDownload,
    SubmissionFile,
    UsageEvent,
)
from jatsimage.core.name_index import build_name_index
from jatsimage.core.rewriter import rewrite_document
from jatsimage.hooks.registry import SEQUENCE_LATE, HookRegistry

logger = logging.getLogger(__name__)

DOWNLOAD_HOOK = "ArticleHandler::download"
DOWNLOAD_FINISHED_HOOK = "JatsImagePlugin::articleDownloadFinished"

# Served inline so they render in the browser instead of downloading
_INLINE_MIMETYPES = frozenset({"text/plain", "text/css"})


class JatsImagePlugin:
    """Rewrites JATS XML galleys on download so embedded graphics resolve.

    Registered late on the article download hook, it only takes over
    downloads of XML galley files; every other download falls through to
    the callbacks after it.
    """

    def __init__(self, container: Container) -> None:
        self._container = container

    @property
    def display_name(self) -> str:
        return "JATS Image Resolver"

    @property
    def description(self) -> str:
        return "Replaces JATS graphic references with download URLs for XML galleys."

    def register(self, hooks: HookRegistry | None = None) -> bool:
        """Register the download callback if the plugin is enabled.

        Args:
            hooks: Registry to register on. Defaults to the container's.

        Returns:
            True if the callback was registered.
        """
        if not self._container.config.enabled:
            logger.info("%s is disabled; not registering", self.display_name)
            return False

        registry = hooks if hooks is not None else self._container.hooks
        registry.register(DOWNLOAD_HOOK, self.article_download, SEQUENCE_LATE)
        return True

    def article_download(
        self,
        hook_name: str,
        article: Article,
        galley: Galley | None,
        file_id: int,
    ) -> GalleyDownload | None:
        """Serve a rewritten XML galley file.

        Returns:
            The rewritten download, or None to let the host serve the file.
        """
        if galley is None:
            return None

        submission_file = galley.file
        if submission_file is None or galley.submission_file_id != file_id:
            return None

        if not is_jats_file(submission_file.mimetype, submission_file.name):
            return None

        content = self.jats_contents(article, galley, submission_file)
        if content is None:
            return None

        download = GalleyDownload(content=content)
        self._container.hooks.call(DOWNLOAD_FINISHED_HOOK, article, galley, download)
        try:
            self._record_usage(article, galley, submission_file)
        except JatsImageError as e:
            logger.warning("Galley %d: cannot record usage: %s", galley.id, redact_error(e))
        return download

    def jats_contents(
        self, article: Article, galley: Galley, submission_file: SubmissionFile
    ) -> bytes | None:
        """Read the galley's XML and rewrite its graphic references.

        Returns:
            The rewritten XML, or None if the stored file cannot be read.
        """
        contents = self._container.file_store.read(submission_file.path)
        if contents is None:
            logger.warning(
                "Cannot read XML galley file %d at %s", submission_file.id, submission_file.path
            )
            return None

        index = build_name_index(self.embeddable_files(article, galley, submission_file))
        result = rewrite_document(contents, index)

        if result.parsed:
            logger.info(
                "Galley %d: rewrote %d of %d graphic references",
                galley.id,
                result.rewritten,
                result.references,
            )
        elif index:
            logger.warning("Galley %d: file %d is not well-formed XML", galley.id, submission_file.id)
        return result.content

    def embeddable_files(
        self, article: Article, galley: Galley, submission_file: SubmissionFile
    ) -> list[EmbeddableFile]:
        """List the galley file's dependent files with their download URLs."""
        files = []
        for dependent in self._container.file_repository.list_dependent_files(submission_file.id):
            params = {}
            if dependent.mimetype in _INLINE_MIMETYPES:
                params["inline"] = "true"

            url = self._container.url_builder.build_download_url(
                article.best_id,
                galley.publication_id,
                galley.best_galley_id,
                dependent.id,
                dependent.name,
                params,
            )
            files.append(EmbeddableFile(name=dependent.name, url=url, mime_type=dependent.mimetype))
        return files

    def _record_usage(
        self, article: Article, galley: Galley, submission_file: SubmissionFile
    ) -> None:
        """Emit a usage event, attributing it to the issue only within the same journal."""
        repository = self._container.publication_repository
        issue_id = None

        publication = repository.get_publication(galley.publication_id)
        if publication is not None and publication.issue_id:
            issue = repository.get_issue(publication.issue_id)
            if issue is not None and issue.journal_id == article.context_id:
                issue_id = issue.id

        self._container.usage_events.emit(
            UsageEvent(
                context_id=article.context_id,
                submission_id=article.id,
                galley_id=galley.id,
                submission_file_id=submission_file.id,
                issue_id=issue_id,
            )
        )

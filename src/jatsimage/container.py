"""Dependency injection container for jatsimage."""

from __future__ import annotations

from dataclasses import dataclass, field

from jatsimage.config import JatsImageConfig
from jatsimage.core.interfaces import (
    FileStorePort,
    PublicationRepositoryPort,
    SubmissionFileRepositoryPort,
    UrlBuilderPort,
    UsageEventPort,
)
from jatsimage.hooks.registry import HookRegistry


@dataclass
class Container:
    """DI container holding all ports and adapters."""

    config: JatsImageConfig
    file_store: FileStorePort
    file_repository: SubmissionFileRepositoryPort
    publication_repository: PublicationRepositoryPort
    url_builder: UrlBuilderPort
    usage_events: UsageEventPort
    hooks: HookRegistry = field(default_factory=HookRegistry)

    @staticmethod
    def create_default(config: JatsImageConfig) -> Container:
        """Create a container with production adapters."""
        from jatsimage.adapters.file_store import LocalFileStore
        from jatsimage.adapters.manifest import ManifestRepository
        from jatsimage.adapters.url_builder import OjsUrlBuilder
        from jatsimage.adapters.usage_log import JsonlUsageLog

        repository = ManifestRepository.from_path(config.manifest_path)

        return Container(
            config=config,
            file_store=LocalFileStore(config.files_dir),
            file_repository=repository,
            publication_repository=repository,
            url_builder=OjsUrlBuilder(config.base_url, config.context_path),
            usage_events=JsonlUsageLog(config.usage_log_path),
        )

    @staticmethod
    def create_for_testing(
        config: JatsImageConfig | None = None,
        file_store: FileStorePort | None = None,
        file_repository: SubmissionFileRepositoryPort | None = None,
        publication_repository: PublicationRepositoryPort | None = None,
        url_builder: UrlBuilderPort | None = None,
        usage_events: UsageEventPort | None = None,
        hooks: HookRegistry | None = None,
    ) -> Container:
        """Create a container with test/mock adapters.

        All parameters are optional. Provide mocks for the components
        you want to control in tests.
        """
        if config is None:
            config = JatsImageConfig(
                base_url="https://journal.test",
                context_path="test",
                files_dir="/tmp/jatsimage-test/files",
            )

        # Use stubs that raise if accidentally called without being mocked
        class StubFileStore(FileStorePort):
            def read(self, path: str) -> bytes | None:
                raise NotImplementedError("Provide a mock file_store")

        class StubFileRepository(SubmissionFileRepositoryPort):
            def list_dependent_files(self, submission_file_id: int) -> list:
                raise NotImplementedError("Provide a mock file_repository")

        class StubPublicationRepository(PublicationRepositoryPort):
            def get_publication(self, publication_id: int) -> None:
                raise NotImplementedError("Provide a mock publication_repository")

            def get_issue(self, issue_id: int) -> None:
                raise NotImplementedError("Provide a mock publication_repository")

        class StubUrlBuilder(UrlBuilderPort):
            def build_download_url(  # type: ignore[override]
                self, article_id: str, publication_id: int, galley_id: str,
                file_id: int, file_name: str, params: object = None,
            ) -> str:
                raise NotImplementedError("Provide a mock url_builder")

        class StubUsageEvents(UsageEventPort):
            def emit(self, event: object) -> None:  # type: ignore[override]
                raise NotImplementedError("Provide a mock usage_events")

        return Container(
            config=config,
            file_store=file_store or StubFileStore(),
            file_repository=file_repository or StubFileRepository(),
            publication_repository=publication_repository or StubPublicationRepository(),
            url_builder=url_builder or StubUrlBuilder(),
            usage_events=usage_events or StubUsageEvents(),
            hooks=hooks or HookRegistry(),
        )

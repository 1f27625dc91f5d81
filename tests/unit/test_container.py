"""Tests for DI container."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from jatsimage.adapters.file_store import LocalFileStore
from jatsimage.adapters.manifest import ManifestRepository
from jatsimage.adapters.url_builder import OjsUrlBuilder
from jatsimage.adapters.usage_log import JsonlUsageLog
from jatsimage.config import JatsImageConfig
from jatsimage.container import Container
from jatsimage.core.errors import ManifestError


class TestContainer:
    """Tests for Container factories."""

    def test_create_for_testing_defaults(self) -> None:
        container = Container.create_for_testing()
        assert container.config.context_path == "test"
        assert container.hooks.callbacks("ArticleHandler::download") == []

    def test_create_for_testing_with_custom_config(self) -> None:
        config = JatsImageConfig(
            base_url="https://other.test", context_path="other", files_dir="/tmp/files"
        )
        container = Container.create_for_testing(config=config)
        assert container.config.base_url == "https://other.test"

    def test_create_for_testing_stubs_raise(self) -> None:
        container = Container.create_for_testing()
        with pytest.raises(NotImplementedError):
            container.file_store.read("article.xml")
        with pytest.raises(NotImplementedError):
            container.file_repository.list_dependent_files(10)
        with pytest.raises(NotImplementedError):
            container.publication_repository.get_publication(3)
        with pytest.raises(NotImplementedError):
            container.url_builder.build_download_url("1", 3, "4", 10, "fig1.png")
        with pytest.raises(NotImplementedError):
            container.usage_events.emit(None)  # type: ignore[arg-type]

    def test_create_default(self, test_config: JatsImageConfig) -> None:
        Path(test_config.manifest_path).write_text(yaml.dump({"files": []}))

        container = Container.create_default(test_config)

        assert isinstance(container.file_store, LocalFileStore)
        assert isinstance(container.file_repository, ManifestRepository)
        assert container.publication_repository is container.file_repository
        assert isinstance(container.url_builder, OjsUrlBuilder)
        assert isinstance(container.usage_events, JsonlUsageLog)

    def test_create_default_missing_manifest(self, test_config: JatsImageConfig) -> None:
        with pytest.raises(ManifestError, match="Manifest file not found"):
            Container.create_default(test_config)

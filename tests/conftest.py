"""Shared test fixtures for jatsimage."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from jatsimage.config import JatsImageConfig
from jatsimage.container import Container
from jatsimage.core.models import Issue, Publication
from jatsimage.hooks.registry import HookRegistry


@pytest.fixture()
def test_config(tmp_path: Path) -> JatsImageConfig:
    """Create a test config pointing at temp directories."""
    return JatsImageConfig(
        base_url="https://journal.test",
        context_path="demo",
        files_dir=str(tmp_path / "files"),
        manifest_path=str(tmp_path / "manifest.yaml"),
        usage_log_path=str(tmp_path / "usage.jsonl"),
    )


@pytest.fixture()
def test_container(test_config: JatsImageConfig) -> Container:
    """Create a test container with mocked host collaborators.

    URLs are built as https://journal.test/download/<file_id>, and the
    galley's publication sits in issue 2 of journal 1.
    """
    url_builder = MagicMock()
    url_builder.build_download_url.side_effect = (
        lambda article_id, publication_id, galley_id, file_id, file_name, params=None: (
            f"https://journal.test/download/{file_id}"
        )
    )
    publication_repository = MagicMock()
    publication_repository.get_publication.return_value = Publication(id=3, issue_id=2)
    publication_repository.get_issue.return_value = Issue(id=2, journal_id=1)

    return Container(
        config=test_config,
        file_store=MagicMock(),
        file_repository=MagicMock(),
        publication_repository=publication_repository,
        url_builder=url_builder,
        usage_events=MagicMock(),
        hooks=HookRegistry(),
    )

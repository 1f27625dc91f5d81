"""Integration test: galley download with real adapters over a files directory."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner
from lxml import etree

from jatsimage.adapters.manifest import ManifestRepository
from jatsimage.cli import main
from jatsimage.config import load_config
from jatsimage.container import Container
from jatsimage.core.models import FileStage, GalleyDownload
from jatsimage.plugin import DOWNLOAD_HOOK, JatsImagePlugin

XLINK_HREF = "{http://www.w3.org/1999/xlink}href"

ARTICLE = b"""<?xml version="1.0" encoding="UTF-8"?>
<article xmlns:xlink="http://www.w3.org/1999/xlink" article-type="research-article">
  <body>
    <sec>
      <p>Results are shown in <xref ref-type="fig" rid="f1">Figure 1</xref>.</p>
      <fig id="f1">
        <caption><p>Growth over time.</p></caption>
        <graphic xlink:href="figures/Figure%201.png"/>
      </fig>
      <p>The rate is <inline-graphic xlink:href="EQ1.GIF"/> per day.</p>
      <supplementary-material>
        <graphic href="notes.txt"/>
      </supplementary-material>
      <graphic xlink:href="not-uploaded.tif"/>
    </sec>
  </body>
</article>
"""


@pytest.fixture()
def site(tmp_path: Path) -> Path:
    """Lay out a files directory, manifest and config for one journal."""
    files_dir = tmp_path / "files"
    (files_dir / "journals" / "1").mkdir(parents=True)
    (files_dir / "journals" / "1" / "article.xml").write_bytes(ARTICLE)
    (files_dir / "journals" / "1" / "article.pdf").write_bytes(b"%PDF-1.7")

    dependent = FileStage.DEPENDENT.value
    manifest = {
        "articles": [{"id": 1, "best_id": "growth", "context_id": 1}],
        "publications": [{"id": 3, "issue_id": 2}],
        "issues": [{"id": 2, "journal_id": 1}],
        "galleys": [
            {
                "id": 4,
                "article_id": 1,
                "best_galley_id": "xml",
                "publication_id": 3,
                "submission_file_id": 10,
            },
            {
                "id": 5,
                "article_id": 1,
                "best_galley_id": "pdf",
                "publication_id": 3,
                "submission_file_id": 20,
            },
        ],
        "files": [
            {
                "id": 10,
                "name": "article.xml",
                "mimetype": "text/xml",
                "path": "journals/1/article.xml",
            },
            {
                "id": 20,
                "name": "article.pdf",
                "mimetype": "application/pdf",
                "path": "journals/1/article.pdf",
            },
            {
                "id": 11,
                "name": "Figure 1.png",
                "mimetype": "image/png",
                "path": "journals/1/fig1.png",
                "file_stage": dependent,
                "assoc_id": 10,
            },
            {
                "id": 12,
                "name": "eq1.gif",
                "mimetype": "image/gif",
                "path": "journals/1/eq1.gif",
                "file_stage": dependent,
                "assoc_id": 10,
            },
            {
                "id": 13,
                "name": "notes.txt",
                "mimetype": "text/plain",
                "path": "journals/1/notes.txt",
                "file_stage": dependent,
                "assoc_id": 10,
            },
        ],
    }
    (tmp_path / "manifest.yaml").write_text(yaml.dump(manifest))

    config = {
        "base_url": "https://journal.test",
        "context_path": "demo",
        "files_dir": str(files_dir),
        "manifest_path": str(tmp_path / "manifest.yaml"),
        "usage_log_path": str(tmp_path / "usage.jsonl"),
    }
    (tmp_path / "config.yaml").write_text(yaml.dump(config))
    return tmp_path


def graphic_hrefs(content: bytes) -> list[str | None]:
    """Return the href of every graphic element in document order."""
    root = etree.fromstring(content)
    return [
        e.get(XLINK_HREF) or e.get("href") for e in root.iter("graphic", "inline-graphic")
    ]


def download(site: Path, galley_id: int) -> GalleyDownload | None:
    """Run a galley download through the hook registry with production adapters."""
    config = load_config(str(site / "config.yaml"))
    article, galley = ManifestRepository.from_path(config.manifest_path).get_galley(galley_id)
    container = Container.create_default(config)
    JatsImagePlugin(container).register()
    return container.hooks.call(DOWNLOAD_HOOK, article, galley, galley.submission_file_id) or None


class TestDownloadFlow:
    """End-to-end galley downloads."""

    def test_xml_galley_rewritten(self, site: Path) -> None:
        result = download(site, 4)

        assert result is not None
        base = "https://journal.test/index.php/demo/article/download/growth/version/3/xml"
        assert graphic_hrefs(result.content) == [
            f"{base}/11/Figure%201.png",
            f"{base}/12/eq1.gif",
            f"{base}/13/notes.txt?inline=true",
            "not-uploaded.tif",
        ]

    def test_only_hrefs_change(self, site: Path) -> None:
        result = download(site, 4)

        assert result is not None
        base = b"https://journal.test/index.php/demo/article/download/growth/version/3/xml"
        expected = (
            ARTICLE.replace(b"figures/Figure%201.png", base + b"/11/Figure%201.png")
            .replace(b"EQ1.GIF", base + b"/12/eq1.gif")
            .replace(b"notes.txt", base + b"/13/notes.txt?inline=true")
        )
        assert result.content == expected

    def test_usage_event_recorded(self, site: Path) -> None:
        download(site, 4)

        lines = (site / "usage.jsonl").read_text().splitlines()
        assert len(lines) == 1
        event = json.loads(lines[0])
        assert event["galley_id"] == 4
        assert event["submission_file_id"] == 10
        assert event["issue_id"] == 2

    def test_stored_file_untouched(self, site: Path) -> None:
        download(site, 4)
        assert (site / "files" / "journals" / "1" / "article.xml").read_bytes() == ARTICLE

    def test_pdf_galley_not_handled(self, site: Path) -> None:
        assert download(site, 5) is None
        assert not (site / "usage.jsonl").exists()

    def test_missing_source_not_handled(self, site: Path) -> None:
        (site / "files" / "journals" / "1" / "article.xml").unlink()
        assert download(site, 4) is None


class TestDownloadCommand:
    """The download CLI command against the same site."""

    def test_writes_rewritten_xml(self, site: Path) -> None:
        output = site / "out.xml"
        runner = CliRunner()
        result = runner.invoke(
            main, ["download", "4", "-c", str(site / "config.yaml"), "-o", str(output)]
        )
        assert result.exit_code == 0
        assert graphic_hrefs(output.read_bytes())[1].endswith("/12/eq1.gif")  # type: ignore[union-attr]

    def test_unknown_galley(self, site: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["download", "40", "-c", str(site / "config.yaml")])
        assert result.exit_code == 1
        assert "Download failed" in result.output
        assert "Galley 40 not found" in result.output

    def test_galley_not_served(self, site: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["download", "5", "-c", str(site / "config.yaml")])
        assert result.exit_code == 1
        assert "not served by jatsimage" in result.output

    def test_disabled_plugin(self, site: Path) -> None:
        config = yaml.safe_load((site / "config.yaml").read_text())
        config["enabled"] = False
        (site / "config.yaml").write_text(yaml.dump(config))

        runner = CliRunner()
        result = runner.invoke(main, ["download", "4", "-c", str(site / "config.yaml")])
        assert result.exit_code == 1
        assert "not served by jatsimage" in result.output

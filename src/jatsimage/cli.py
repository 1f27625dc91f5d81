"""CLI entry point for jatsimage."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from jatsimage import __version__


@click.group()
@click.version_option(version=__version__, prog_name="jatsimage")
def main() -> None:
    """Jatsimage: resolve JATS graphic references to galley file URLs."""
    pass


@main.command()
@click.argument("xml_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-m",
    "--map",
    "mappings",
    multiple=True,
    metavar="NAME=URL",
    help="File name and the URL it resolves to (repeatable)",
)
@click.option("-o", "--output", default=None, help="Write to this file instead of stdout")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose (DEBUG) logging")
def rewrite(xml_path: str, mappings: tuple[str, ...], output: str | None, verbose: bool) -> None:
    """Rewrite graphic hrefs in a local XML file using NAME=URL mappings."""
    _setup_logging(verbose)

    from jatsimage.core.models import EmbeddableFile
    from jatsimage.core.name_index import build_name_index
    from jatsimage.core.rewriter import rewrite_document

    files = []
    for mapping in mappings:
        name, sep, url = mapping.partition("=")
        if not sep or not name or not url:
            click.echo(f"Invalid mapping {mapping!r}: expected NAME=URL", err=True)
            sys.exit(2)
        files.append(EmbeddableFile(name=name, url=url))

    result = rewrite_document(Path(xml_path).read_bytes(), build_name_index(files))
    _write_output(result.content, output)

    if output is not None:
        click.echo(f"Rewrote {result.rewritten} of {result.references} graphic references.")


@main.command()
@click.argument("galley_id", type=int)
@click.option(
    "-c",
    "--config",
    "config_path",
    default=None,
    help="Path to config file (default: ~/.jatsimage/config.yaml)",
)
@click.option("-o", "--output", default=None, help="Write to this file instead of stdout")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose (DEBUG) logging")
def download(galley_id: int, config_path: str | None, output: str | None, verbose: bool) -> None:
    """Serve a galley download the way the host would, with graphics resolved."""
    _setup_logging(verbose)

    from jatsimage.adapters.manifest import ManifestRepository
    from jatsimage.config import load_config
    from jatsimage.container import Container
    from jatsimage.core.errors import redact_error
    from jatsimage.plugin import DOWNLOAD_HOOK, JatsImagePlugin

    try:
        config = load_config(config_path)
    except Exception as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)

    try:
        article, galley = ManifestRepository.from_path(config.manifest_path).get_galley(galley_id)

        container = Container.create_default(config)
        JatsImagePlugin(container).register()
        result = container.hooks.call(DOWNLOAD_HOOK, article, galley, galley.submission_file_id)
    except Exception as e:
        click.echo(f"Download failed: {redact_error(e)}", err=True)
        sys.exit(1)

    if not result:
        click.echo(f"Galley {galley_id} is not served by jatsimage.", err=True)
        sys.exit(1)

    _write_output(result.content, output)


def _write_output(content: bytes, output: str | None) -> None:
    """Write document bytes to a file, or to stdout."""
    if output is None:
        click.echo(content, nl=False)
    else:
        Path(output).write_bytes(content)


def _setup_logging(verbose: bool) -> None:
    """Configure logging to stderr, leaving stdout for document output."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )

"""Download URL construction for OJS-style article file links."""

from __future__ import annotations

from urllib.parse import quote, urlencode

from jatsimage.core.interfaces import UrlBuilderPort


class OjsUrlBuilder(UrlBuilderPort):
    """Builds ``article/download`` URLs under a journal context.

    Example:
        https://journal.example.org/index.php/demo/article/download/12/version/3/7/45/fig1.png
    """

    def __init__(self, base_url: str, context_path: str) -> None:
        self._base_url = base_url.rstrip("/")
        self._context_path = context_path.strip("/")

    def build_download_url(
        self,
        article_id: str,
        publication_id: int,
        galley_id: str,
        file_id: int,
        file_name: str,
        params: dict[str, str] | None = None,
    ) -> str:
        """Build the download URL for a galley file, encoding each path segment."""
        segments = [
            "index.php",
            self._context_path,
            "article",
            "download",
            str(article_id),
            "version",
            str(publication_id),
            str(galley_id),
            str(file_id),
        ]
        if file_name:
            segments.append(file_name)

        path = "/".join(quote(segment, safe="") for segment in segments if segment)
        url = f"{self._base_url}/{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

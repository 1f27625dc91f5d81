"""jatsimage: resolve JATS graphic references to galley file download URLs."""

__version__ = "0.1.0"

"""receiptscan — batch receipt scan ingestion."""

from receiptscan.version import __version__

__all__ = ["__version__"]

"""Error taxonomy.

FetchError is fatal to a run. SearchError, DownloadError and StorageError
are scoped to a single occupant and never escape ImageEnricher.
"""

from __future__ import annotations


class AstrosError(Exception):
    """Base class for all roster sync errors."""


class ConfigError(AstrosError):
    """Required configuration is missing or invalid."""


class FetchError(AstrosError):
    """The occupancy feed could not be fetched or reported failure."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SearchError(AstrosError):
    """The image search request failed."""


class DownloadError(AstrosError):
    """The image download failed."""


class StorageError(AstrosError):
    """The blob store rejected a write."""

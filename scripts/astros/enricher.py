"""Photo backfill via Google Custom Search.

Each network step returns a StepResult instead of raising, and enrich()
resolves any failure to None so that one person without a photo never
aborts a run. The record is then stored without an image and picked up
again on the next run.
"""

from __future__ import annotations

import hashlib
import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

import requests

from scripts.astros.blob_store import BlobStore
from scripts.astros.config import ImageSearchConfig
from scripts.astros.errors import (
    AstrosError,
    DownloadError,
    SearchError,
    StorageError,
)

logger = logging.getLogger("astros.enricher")

IMAGE_PREFIX = "astronauts"
DEFAULT_EXTENSION = "jpg"

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

T = TypeVar("T")


@dataclass(frozen=True)
class StepResult(Generic[T]):
    """Outcome of one enrichment step: a value, or the error that stopped it."""

    value: Optional[T] = None
    error: Optional[AstrosError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def reason(self) -> str:
        return str(self.error) if self.error else ""

    @classmethod
    def success(cls, value: T) -> "StepResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AstrosError) -> "StepResult[T]":
        return cls(error=error)


@dataclass(frozen=True)
class DownloadedImage:
    content: bytes
    content_type: Optional[str]


# Latin letters with no Unicode decomposition; NFKD alone would drop them.
_TRANSLITERATE = str.maketrans({
    "ß": "ss",
    "æ": "ae",
    "œ": "oe",
    "ø": "o",
    "ł": "l",
    "đ": "d",
    "ð": "d",
    "þ": "th",
    "ħ": "h",
    "ı": "i",
    "ŧ": "t",
    "ŋ": "n",
    "ĸ": "k",
    "ſ": "s",
})


def slugify(text: str, separator: str = "-") -> str:
    """Transliterate to ASCII, lowercase, drop apostrophes, and turn other
    non-alphanumeric runs into separator.

    Text with nothing left after transliteration (e.g. a name written only
    in a non-Latin script) maps to a short digest so paths stay unique.
    """
    latin = text.lower().translate(_TRANSLITERATE)
    ascii_text = (
        unicodedata.normalize("NFKD", latin).encode("ascii", "ignore").decode("ascii")
    )
    ascii_text = ascii_text.replace("'", "")
    slug = re.sub(r"[^a-z0-9]+", separator, ascii_text).strip(separator)
    if not slug and text.strip():
        slug = hashlib.md5(text.strip().encode("utf-8")).hexdigest()[:12]
    return slug


def extension_for(content_type: Optional[str]) -> str:
    if not content_type:
        return DEFAULT_EXTENSION
    mime = content_type.split(";", 1)[0].strip().lower()
    return CONTENT_TYPE_EXTENSIONS.get(mime, DEFAULT_EXTENSION)


def storage_path(name: str, craft: str, extension: str) -> str:
    """astronauts/<slug(name)>-<slug(craft)>.<ext>, a pure function of identity."""
    return f"{IMAGE_PREFIX}/{slugify(name)}-{slugify(craft)}.{extension}"


class ImageEnricher:
    def __init__(
        self,
        config: ImageSearchConfig,
        blob_store: BlobStore,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        self._blob_store = blob_store
        self._session = session or requests.Session()

    def enrich(self, name: str, craft: str) -> Optional[str]:
        """Return a URL for a stored photo of this person, or None."""
        extra = {"occupant": name, "craft": craft}
        try:
            result = self._fetch_and_store(name, craft)
        except Exception as exc:  # occupant-scoped, never propagates
            logger.warning(
                "Error searching for image for %s: %s", name, exc, extra=extra
            )
            return None

        if not result.ok:
            logger.warning("%s", result.reason, extra=extra)
            return None
        return result.value

    def _fetch_and_store(self, name: str, craft: str) -> StepResult[str]:
        found = self.search(f"{name} Astronaut")
        if not found.ok:
            return StepResult.failure(found.error)

        downloaded = self.download(found.value)
        if not downloaded.ok:
            return StepResult.failure(downloaded.error)

        image = downloaded.value
        path = storage_path(name, craft, extension_for(image.content_type))
        stored = self.store(path, image)
        if stored.ok:
            logger.info(
                "Image saved: %s", path.rsplit("/", 1)[-1],
                extra={"occupant": name, "craft": craft},
            )
        return stored

    def search(self, query: str) -> StepResult[str]:
        """Link of the first face-type image result for query."""
        params = {
            "key": self._config.api_key,
            "cx": self._config.engine_id,
            "q": query,
            "imgType": "face",
            "searchType": "image",
            "num": 1,
        }
        try:
            resp = self._session.get(
                self._config.endpoint, params=params, timeout=self._config.timeout
            )
        except requests.RequestException as exc:
            return StepResult.failure(SearchError(f"Google search failed for {query!r}: {exc}"))

        if not resp.ok:
            return StepResult.failure(
                SearchError(f"Google search failed for {query!r} (status {resp.status_code})")
            )
        try:
            data = resp.json()
        except ValueError:
            return StepResult.failure(SearchError(f"Google search for {query!r} returned non-JSON"))

        items = data.get("items") if isinstance(data, dict) else None
        if not items:
            return StepResult.failure(SearchError(f"No image found for {query!r}"))
        link = items[0].get("link") if isinstance(items[0], dict) else None
        if not link:
            return StepResult.failure(SearchError(f"First result for {query!r} has no link"))
        return StepResult.success(link)

    def download(self, url: str) -> StepResult[DownloadedImage]:
        try:
            resp = self._session.get(url, timeout=self._config.timeout)
        except requests.RequestException as exc:
            return StepResult.failure(DownloadError(f"Failed to download image {url}: {exc}"))
        if not resp.ok:
            return StepResult.failure(
                DownloadError(f"Failed to download image {url} (status {resp.status_code})")
            )
        return StepResult.success(
            DownloadedImage(content=resp.content, content_type=resp.headers.get("Content-Type"))
        )

    def store(self, path: str, image: DownloadedImage) -> StepResult[str]:
        try:
            url = self._blob_store.put(path, image.content, image.content_type)
        except StorageError as exc:
            return StepResult.failure(exc)
        return StepResult.success(url)

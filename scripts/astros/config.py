"""Configuration via environment variables (and an optional .env file).

Secret-bearing values (API key, database URL or password) may be given as
aws-secret:// or gcp-secret:// references, see scripts.astros.secrets.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from scripts.astros.errors import ConfigError
from scripts.astros.secrets import resolve_secret

DEFAULT_FEED_URL = "http://api.open-notify.org/astros.json"
DEFAULT_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    min_connections: int = 1
    max_connections: int = 4


@dataclass(frozen=True)
class FeedConfig:
    url: str = DEFAULT_FEED_URL
    timeout: float = 10.0


@dataclass(frozen=True)
class ImageSearchConfig:
    api_key: str
    engine_id: str
    endpoint: str = DEFAULT_SEARCH_URL
    timeout: float = 10.0


@dataclass(frozen=True)
class BlobStoreConfig:
    backend: str = "local"  # "local" or "s3"
    root: str = "storage/app/public"
    base_url: Optional[str] = None  # public URL prefix; backend default when unset
    bucket: Optional[str] = None
    region: str = "us-east-1"


@dataclass(frozen=True)
class SchedulerConfig:
    interval_min: int = 60
    misfire_grace_time: int = 300


@dataclass(frozen=True)
class AstrosConfig:
    database: DatabaseConfig
    image_search: Optional[ImageSearchConfig] = None  # None = search credentials not set
    feed: FeedConfig = field(default_factory=FeedConfig)
    blob_store: BlobStoreConfig = field(default_factory=BlobStoreConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    enrich_delay_seconds: float = 1.0

    def require_image_search(self) -> ImageSearchConfig:
        """Search settings for commands that enrich; ConfigError when unset."""
        if self.image_search is None:
            raise ConfigError(
                "GOOGLE_API_KEY and CUSTOM_SEARCH_ENGINE must both be set to sync"
            )
        return self.image_search


def _env_number(name: str, default: str, cast=float):
    raw = os.environ.get(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def _database_url() -> str:
    """DATABASE_URL if set, otherwise a DSN assembled from PG_* variables."""
    url = os.environ.get("DATABASE_URL", "")
    if url:
        return resolve_secret(url, "DATABASE_URL")

    host = os.environ.get("PG_HOST", "localhost")
    port = os.environ.get("PG_PORT", "5432")
    user = os.environ.get("PG_USER", "astros")
    password = resolve_secret(os.environ.get("PG_PASSWORD", "localdev-change-me"), "PG_PASSWORD")
    database = os.environ.get("PG_DATABASE", "astros")
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def load_config() -> AstrosConfig:
    """Load configuration from the environment.

    Search credentials are optional here so that commands which only touch
    the database work without them; sync and scheduler require them.
    """
    load_dotenv()

    timeout = _env_number("HTTP_TIMEOUT_SECONDS", "10")

    database = DatabaseConfig(
        url=_database_url(),
        min_connections=_env_number("DB_MIN_CONNECTIONS", "1", int),
        max_connections=_env_number("DB_MAX_CONNECTIONS", "4", int),
    )

    # Image search (optional until a sync runs)
    image_search = None
    api_key = os.environ.get("GOOGLE_API_KEY", "").strip()
    engine_id = os.environ.get("CUSTOM_SEARCH_ENGINE", "").strip()
    if api_key and engine_id:
        image_search = ImageSearchConfig(
            api_key=resolve_secret(api_key, "GOOGLE_API_KEY"),
            engine_id=engine_id,
            endpoint=os.environ.get("GOOGLE_SEARCH_URL", DEFAULT_SEARCH_URL),
            timeout=timeout,
        )

    backend = os.environ.get("BLOB_BACKEND", "local").lower()
    if backend not in ("local", "s3"):
        raise ConfigError(f"BLOB_BACKEND must be 'local' or 's3', got {backend!r}")
    blob_store = BlobStoreConfig(
        backend=backend,
        root=os.environ.get("BLOB_ROOT", "storage/app/public"),
        base_url=os.environ.get("BLOB_BASE_URL"),
        bucket=os.environ.get("BLOB_S3_BUCKET"),
        region=os.environ.get("AWS_REGION", "us-east-1"),
    )
    if backend == "s3" and not blob_store.bucket:
        raise ConfigError("BLOB_S3_BUCKET is required when BLOB_BACKEND=s3")

    return AstrosConfig(
        database=database,
        image_search=image_search,
        feed=FeedConfig(
            url=os.environ.get("ASTROS_FEED_URL", DEFAULT_FEED_URL),
            timeout=timeout,
        ),
        blob_store=blob_store,
        scheduler=SchedulerConfig(
            interval_min=_env_number("SYNC_INTERVAL_MIN", "60", int),
            misfire_grace_time=_env_number("SCHEDULER_MISFIRE_GRACE", "300", int),
        ),
        enrich_delay_seconds=_env_number("ENRICH_DELAY_SECONDS", "1.0"),
    )

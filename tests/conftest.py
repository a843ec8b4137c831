from __future__ import annotations

import pytest

from scripts.astros.config import FeedConfig, ImageSearchConfig
from tests.fakes import FEED_URL, SEARCH_URL, MemoryBlobStore


@pytest.fixture
def search_config() -> ImageSearchConfig:
    return ImageSearchConfig(api_key="k", engine_id="cx", endpoint=SEARCH_URL, timeout=1)


@pytest.fixture
def feed_config() -> FeedConfig:
    return FeedConfig(url=FEED_URL, timeout=1)


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()

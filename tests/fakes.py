"""In-memory roster and blob stores, canned HTTP responses."""

from __future__ import annotations

from typing import Optional, Sequence

from requests.structures import CaseInsensitiveDict

from scripts.astros.blob_store import BlobStore
from scripts.astros.errors import StorageError
from scripts.astros.models import OccupantRecord
from scripts.astros.roster_store import RosterStore

SEARCH_URL = "https://search.test/customsearch/v1"
FEED_URL = "http://feed.test/astros.json"

_NO_JSON = object()


class FakeResponse:
    def __init__(self, status_code=200, json_data=_NO_JSON, content=b"", headers=None):
        self.status_code = status_code
        self._json = json_data
        self.content = content
        self.headers = CaseInsensitiveDict(headers or {})

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._json is _NO_JSON:
            raise ValueError("No JSON object could be decoded")
        return self._json


class FakeSession:
    """Returns queued responses per URL; an Exception in the queue is raised."""

    def __init__(self, routes: Optional[dict] = None) -> None:
        self.routes = {url: list(queue) for url, queue in (routes or {}).items()}
        self.calls: list[tuple[str, dict]] = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        queue = self.routes.get(url)
        if not queue:
            raise AssertionError(f"unexpected GET {url}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


class MemoryRosterStore(RosterStore):
    def __init__(self, records: Sequence[OccupantRecord] = ()) -> None:
        self.records: list[OccupantRecord] = list(records)
        self.writes: list[tuple] = []

    def all(self) -> list[OccupantRecord]:
        return list(self.records)

    def find_by_name_and_craft(self, name, craft):
        for rec in self.records:
            if rec.name == name and rec.craft == craft:
                return rec
        return None

    def delete_where_name_not_in(self, names) -> int:
        keep = [r for r in self.records if r.name in set(names)]
        removed = len(self.records) - len(keep)
        self.records = keep
        self.writes.append(("delete", tuple(names)))
        return removed

    def create(self, record: OccupantRecord) -> None:
        self.records.append(record)
        self.writes.append(("create", record.name, record.craft, record.image_ref))

    def update_image(self, name, craft, image_ref) -> None:
        self.records = [
            OccupantRecord(r.name, r.craft, image_ref) if r.key == (name, craft) else r
            for r in self.records
        ]
        self.writes.append(("update", name, craft, image_ref))


class MemoryBlobStore(BlobStore):
    def __init__(self, fail: bool = False) -> None:
        self.blobs: dict[str, tuple[bytes, Optional[str]]] = {}
        self.fail = fail

    def put(self, path, data, content_type=None) -> str:
        if self.fail:
            raise StorageError("disk full")
        self.blobs[path] = (data, content_type)
        return f"https://cdn.test/{path}"


def search_hit(link: str) -> FakeResponse:
    return FakeResponse(json_data={"items": [{"link": link, "title": "photo"}]})


def image(content: bytes = b"\xff\xd8img", content_type: str = "image/jpeg") -> FakeResponse:
    return FakeResponse(content=content, headers={"Content-Type": content_type})

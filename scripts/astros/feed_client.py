"""Occupancy feed client (open-notify "people in space")."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from scripts.astros.config import FeedConfig
from scripts.astros.errors import FetchError
from scripts.astros.models import FeedSnapshot, Occupant

logger = logging.getLogger("astros.feed")

SUCCESS_MESSAGE = "success"


class FeedClient:
    """One GET per fetch(), no retries. Any problem is a FetchError."""

    def __init__(
        self, config: FeedConfig, session: Optional[requests.Session] = None
    ) -> None:
        self._url = config.url
        self._timeout = config.timeout
        self._session = session or requests.Session()

    def fetch(self) -> FeedSnapshot:
        try:
            resp = self._session.get(self._url, timeout=self._timeout)
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch astronaut data: {exc}") from exc

        if not resp.ok:
            raise FetchError(
                f"Failed to fetch astronaut data. Status code: {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise FetchError("Feed returned a non-JSON body") from exc

        if not isinstance(payload, dict) or payload.get("message") != SUCCESS_MESSAGE:
            raise FetchError("API response indicates failure")

        people = _parse_people(payload.get("people"))
        number = payload.get("number")
        if not isinstance(number, int):
            number = len(people)

        logger.info("Found %d astronauts", number)
        return FeedSnapshot(number=number, people=people)


def _parse_people(raw) -> list[Occupant]:
    if not isinstance(raw, list):
        raise FetchError("Feed payload has no 'people' list")
    people: list[Occupant] = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise FetchError(f"Feed entry {idx} is not an object")
        name = entry.get("name")
        craft = entry.get("craft")
        if not isinstance(name, str) or not isinstance(craft, str):
            raise FetchError(f"Feed entry {idx} lacks a name or craft")
        people.append(Occupant(name=name, craft=craft))
    return people

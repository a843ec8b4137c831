"""One roster sync run: fetch, reconcile, evict, backfill."""

from __future__ import annotations

import logging
import time
import traceback
from dataclasses import asdict, dataclass
from typing import Callable

from scripts.astros.db import Database
from scripts.astros.enricher import ImageEnricher
from scripts.astros.feed_client import FeedClient
from scripts.astros.models import FeedSnapshot, OccupantRecord
from scripts.astros.reconciler import Action, reconcile
from scripts.astros.roster_store import RosterStore

logger = logging.getLogger("astros.pipeline")


@dataclass
class SyncSummary:
    removed: int = 0
    added: int = 0
    updated: int = 0
    skipped: int = 0
    missing_images: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class RosterSync:
    """Sequential driver. Not safe to run twice concurrently against one store."""

    def __init__(
        self,
        feed: FeedClient,
        store: RosterStore,
        enricher: ImageEnricher,
        delay_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.feed = feed
        self.store = store
        self.enricher = enricher
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def run(self) -> SyncSummary:
        """Raises FetchError before any write if the feed is unusable."""
        return self.apply(self.fetch())

    def fetch(self) -> FeedSnapshot:
        logger.info("Starting astronaut data fetch...")
        snapshot = self.feed.fetch()
        logger.info("Got data successfully!")
        return snapshot

    def apply(self, snapshot: FeedSnapshot) -> SyncSummary:
        """Reconcile a fetched snapshot into the store."""
        plan = reconcile(snapshot.people, self.store.all())
        summary = SyncSummary()

        if plan.to_delete:
            current_names = list(dict.fromkeys(o.name for o in snapshot.people))
            summary.removed = self.store.delete_where_name_not_in(current_names)
            logger.info(
                "Removed %d astronauts who are no longer in space", summary.removed,
                extra={"removed": summary.removed},
            )

        for action in plan.actions:
            name, craft = action.occupant.name, action.occupant.craft
            extra = {"occupant": name, "craft": craft}
            logger.info("Processing: %s", name, extra=extra)

            if action.kind is Action.SKIP:
                logger.info("Astronaut already exists with image, skipping...", extra=extra)
                summary.skipped += 1
                continue

            if action.kind is Action.ENRICH:
                logger.info("Astronaut exists but has no image, fetching...", extra=extra)
            else:
                logger.info("New astronaut found, fetching image...", extra=extra)

            image_ref = self.enricher.enrich(name, craft)
            if not image_ref:
                summary.missing_images += 1

            if action.kind is Action.ENRICH:
                self.store.update_image(name, craft, image_ref)
                summary.updated += 1
                logger.info("Updated %s with image", name, extra=extra)
            else:
                self.store.create(OccupantRecord(name=name, craft=craft, image_ref=image_ref))
                summary.added += 1
                logger.info("Added new astronaut %s to database", name, extra=extra)

            # Search API rate limit: one enrichment per interval.
            self._sleep(self.delay_seconds)

        logger.info(
            "Sync completed: %d removed, %d added, %d updated",
            summary.removed, summary.added, summary.updated,
            extra={
                "removed": summary.removed,
                "added": summary.added,
                "updated": summary.updated,
                "skipped": summary.skipped,
            },
        )
        return summary

    def run_with_tracking(self, db: Database) -> SyncSummary:
        """run() with a sync_runs row, opened only once the feed has been fetched.

        A FetchError propagates before anything is written; later failures
        are recorded on the row and re-raised.
        """
        snapshot = self.fetch()
        run_id = db.record_run_start()
        started = time.monotonic()
        try:
            summary = self.apply(snapshot)
        except Exception as exc:
            db.record_run_end(
                run_id=run_id,
                status="FAILED",
                error_message=str(exc)[:1000],
                error_detail={"traceback": traceback.format_exc()},
            )
            logger.error("Sync failed: %s", exc, extra={"run_id": run_id})
            raise

        db.record_run_end(run_id=run_id, status="SUCCESS", counts=summary.as_dict())
        logger.info(
            "Sync run recorded",
            extra={"run_id": run_id, "duration_s": round(time.monotonic() - started, 3)},
        )
        return summary

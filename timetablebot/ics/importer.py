"""Reconcile extracted ICS candidates against a user's stored events."""

import logging
from collections.abc import Iterable
from datetime import datetime, tzinfo
from typing import Optional, Protocol, Union

from pydantic import BaseModel, Field

from ..storage.models import StoredEvent
from .models import CalendarEvent
from .parser import extract_events

logger = logging.getLogger(__name__)

DUPLICATE_WINDOW_SECONDS = 60


class EventStore(Protocol):
    """Record store operations the importer and agenda depend on."""

    async def find_one_by_owner_title_and_approximate_start(
        self,
        owner_id: str,
        title: str,
        start: datetime,
        tolerance_seconds: float,
    ) -> Optional[StoredEvent]: ...

    async def insert(self, event: CalendarEvent) -> StoredEvent: ...

    async def delete_all_by_owner(self, owner_id: str) -> int: ...

    async def find_all_by_owner(
        self,
        owner_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[StoredEvent]: ...


class ImportSummary(BaseModel):
    """Result of one import: only newly persisted events are reported."""

    imported_count: int = Field(default=0, description="Number of newly stored events")
    imported_events: list[StoredEvent] = Field(default_factory=list)


async def reconcile(
    store: EventStore,
    owner_id: str,
    candidates: Iterable[CalendarEvent],
) -> ImportSummary:
    """Persist candidates that are not already stored for the owner.

    A candidate counts as a duplicate when the owner already has an event with
    the same title starting within DUPLICATE_WINDOW_SECONDS of it. Duplicates
    are skipped without being reported.

    Args:
        store: Record store
        owner_id: Authenticated user the events belong to
        candidates: Events produced by the extractor

    Returns:
        ImportSummary with the newly stored events

    Raises:
        StorageError: If a lookup or insert fails; earlier inserts are kept
    """
    summary = ImportSummary()
    skipped = 0

    for candidate in candidates:
        existing = await store.find_one_by_owner_title_and_approximate_start(
            owner_id,
            candidate.title,
            candidate.start_time,
            DUPLICATE_WINDOW_SECONDS,
        )
        if existing is not None:
            skipped += 1
            logger.debug(
                "Skipping duplicate event %r at %s (matches %s)",
                candidate.title,
                candidate.start_time.isoformat(),
                existing.id,
            )
            continue

        stored = await store.insert(candidate)
        summary.imported_events.append(stored)

    summary.imported_count = len(summary.imported_events)
    logger.info(
        "Import for owner %s finished: %d imported, %d duplicates skipped",
        owner_id,
        summary.imported_count,
        skipped,
    )
    return summary


async def import_ics(
    store: EventStore,
    owner_id: str,
    content: Union[str, bytes],
    tz: Union[str, tzinfo, None] = None,
) -> ImportSummary:
    """Extract events from ICS content and reconcile them into the store."""
    candidates = extract_events(content, owner_id, tz=tz)
    logger.debug("Extracted %d candidate events for owner %s", len(candidates), owner_id)
    return await reconcile(store, owner_id, candidates)

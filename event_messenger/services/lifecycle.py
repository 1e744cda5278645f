"""
Event lifecycle state machine

    Active (unsent) --mark_notified--> Notified (sent, inactive) --delete--> Deleted

There is no path from Active straight to Deleted and no way back from
Notified to Active.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from event_messenger.core.errors import ArtifactError, PersistenceError, PreconditionError
from event_messenger.models import Event
from event_messenger.services.artifact_service import ArtifactStore
from event_messenger.services.repositories import EventStore
from event_messenger.utils.dates import local_day_window

logger = logging.getLogger(__name__)


def is_due_for_notification(event: Event, today: date) -> bool:
    """Event is dated on the local day ``today`` and has not been notified yet"""
    if event.email_sent:
        return False
    start, end = local_day_window(today)
    return start <= event.event_date < end


def is_deletion_eligible(event: Event, grace_days: int, now: datetime) -> bool:
    """Notified, archived, and notified at least ``grace_days`` ago.

    Events that were never successfully notified are never eligible: their
    submissions would be lost unsent.
    """
    if not event.email_sent or event.active or event.email_sent_at is None:
        return False
    return now - event.email_sent_at >= timedelta(days=grace_days)


class EventLifecycle:
    """Guarded state transitions that persist through the event store"""

    def __init__(self, store: EventStore, artifacts: Optional[ArtifactStore] = None):
        self.store = store
        self.artifacts = artifacts or ArtifactStore()

    def mark_notified(self, event: Event, now: datetime) -> Event:
        """Record a successful notification and archive the event.

        Re-marking an already notified event is ignored and keeps the first
        ``email_sent_at``.

        Raises:
            PersistenceError: the store write failed; ``event`` is left unchanged
        """
        if event.email_sent:
            logger.warning(f"Event {event.name} already marked as sent at {event.email_sent_at}, ignoring")
            return event

        previous = (event.email_sent, event.active, event.email_sent_at)
        event.email_sent = True
        event.active = False
        event.email_sent_at = now
        try:
            self.store.update(event)
        except PersistenceError:
            event.email_sent, event.active, event.email_sent_at = previous
            raise

        logger.debug(f"Event {event.name} marked as sent")
        return event

    def delete(self, event: Event, grace_days: int, now: datetime) -> None:
        """Permanently delete an event, its submissions and their images.

        Raises:
            PreconditionError: the event is not eligible for deletion right now
            PersistenceError: the store failed to read or delete
        """
        if not is_deletion_eligible(event, grace_days, now):
            raise PreconditionError(
                f"Cannot delete event {event.name}: not notified or grace period of {grace_days} days not elapsed"
            )

        filenames = [s.filename for s in self.store.list_submissions(event.id) if s.filename]

        if not self.store.delete(event.id):
            logger.warning(f"Event {event.name} (ID: {event.id}) was already deleted")

        for filename in filenames:
            try:
                self.artifacts.remove(filename)
            except ArtifactError as e:
                logger.warning(f"Could not remove image {filename} of event {event.name}: {e}")

        logger.info(f"Event deleted: {event.name} (ID: {event.id})")

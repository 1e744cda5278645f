"""
Assembles the bounded, image-inlined notification batch for one event
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from event_messenger.core.config import settings
from event_messenger.core.errors import ArtifactError
from event_messenger.models import Event, Submission
from event_messenger.services.artifact_service import ArtifactStore, InlineImage

logger = logging.getLogger(__name__)


@dataclass
class BatchEntry:
    """One contribution as it appears in the notification email"""
    message: str
    author: str
    image: Optional[InlineImage] = None

    @property
    def image_data_uri(self) -> str:
        return self.image.data_uri if self.image else ""


@dataclass
class NotificationBatch:
    event_name: str
    recipient_name: str
    recipient_email: str
    event_date: datetime
    coordinator_name: str
    total_count: int
    entries: List[BatchEntry] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def truncated(self) -> bool:
        return self.total_count > len(self.entries)


class BatchBuilder:
    """Builds a ``NotificationBatch`` from an event and its submissions.

    Submissions are expected in store order (newest first). When there are
    more than ``max_submissions`` only the first ``max_submissions`` are kept,
    while ``total_count`` still reports the full number.
    """

    def __init__(self, artifacts: ArtifactStore, max_submissions: Optional[int] = None):
        self.artifacts = artifacts
        self.max_submissions = settings.MAX_SUBMISSIONS_PER_EMAIL if max_submissions is None else max_submissions

    def build(self, event: Event, submissions: Sequence[Submission]) -> NotificationBatch:
        total_count = len(submissions)
        retained = list(submissions)

        if total_count > self.max_submissions:
            logger.info(
                f"Event {event.name} has {total_count} submissions, capping at {self.max_submissions} for email size"
            )
            retained = retained[:self.max_submissions]

        entries = [self._entry_for(submission) for submission in retained]

        return NotificationBatch(
            event_name=event.name,
            recipient_name=event.recipient_name or "",
            recipient_email=event.recipient_email or "",
            event_date=event.event_date,
            coordinator_name=event.coordinator_name or "",
            total_count=total_count,
            entries=entries,
        )

    def _entry_for(self, submission: Submission) -> BatchEntry:
        image = None
        if submission.filename:
            try:
                image = self.artifacts.encode_inline(submission.filename)
            except ArtifactError as e:
                # Keep the message, drop only the image
                logger.warning(f"Could not encode image for submission from {submission.name}: {e}")

        return BatchEntry(message=submission.message, author=submission.name, image=image)

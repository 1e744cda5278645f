"""
Sends the consolidated notification email for one event
"""

import enum
import logging
from datetime import datetime
from typing import Callable

from event_messenger.core.errors import PersistenceError, StateUpdateError
from event_messenger.models import Event
from event_messenger.services.batch_builder import BatchBuilder
from event_messenger.services.email_renderer import EmailRenderer
from event_messenger.services.lifecycle import EventLifecycle
from event_messenger.services.mail_service import MailTransport
from event_messenger.services.repositories import EventStore

logger = logging.getLogger(__name__)

# Most SMTP relays reject messages around 20-25MB
EMAIL_SIZE_WARNING_KB = 15000


class NotificationOutcome(enum.Enum):
    SENT = "sent"
    EMPTY = "empty"  # nothing to send, event closed without an email


class Notifier:
    """Build -> render -> send -> mark notified, for a single event"""

    def __init__(
        self,
        store: EventStore,
        lifecycle: EventLifecycle,
        builder: BatchBuilder,
        renderer: EmailRenderer,
        transport: MailTransport,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.lifecycle = lifecycle
        self.builder = builder
        self.renderer = renderer
        self.transport = transport
        self.clock = clock

    def notify(self, event: Event) -> NotificationOutcome:
        """Deliver the event's messages to its recipient.

        Raises:
            PersistenceError: submissions could not be read
            RenderError: the email could not be rendered, nothing was sent
            DeliveryError: the transport failed, the event stays due
            StateUpdateError: the email went out but the event is still marked unsent
        """
        submissions = self.store.list_submissions(event.id)
        batch = self.builder.build(event, submissions)

        if batch.is_empty:
            logger.info(f"No submissions were made for event {event.name}, closing it without an email")
            self.lifecycle.mark_notified(event, self.clock())
            return NotificationOutcome.EMPTY

        html = self.renderer.render(batch)

        size_kb = len(html.encode("utf-8")) // 1024
        logger.info(f"Email size for event {event.name}: {size_kb} KB ({len(batch.entries)} submissions)")
        if size_kb > EMAIL_SIZE_WARNING_KB:
            logger.warning(f"Email for event {event.name} may be too large for SMTP ({size_kb} KB)")

        subject = f"Your {event.name} Messages"
        self.transport.send(batch.recipient_email, subject, html)

        try:
            self.lifecycle.mark_notified(event, self.clock())
        except PersistenceError as e:
            logger.critical(
                f"Email sent for event {event.name} but failed to mark as sent, "
                f"it will be sent again on the next run: {e}"
            )
            raise StateUpdateError(f"Failed to mark event {event.id} as sent: {e}") from e

        logger.info(f"Successfully sent notification for event: {event.name} to {batch.recipient_email}")
        return NotificationOutcome.SENT

"""
Builds the notification pipeline from settings
"""

from typing import Optional

from sqlalchemy.orm import sessionmaker

from event_messenger.core.config import Settings, settings as default_settings
from event_messenger.services.artifact_service import ArtifactStore
from event_messenger.services.batch_builder import BatchBuilder
from event_messenger.services.email_renderer import EmailRenderer
from event_messenger.services.lifecycle import EventLifecycle
from event_messenger.services.mail_service import MailTransport, SMTPTransport
from event_messenger.services.notifier import Notifier
from event_messenger.services.repositories import EventStore
from event_messenger.services.scheduler import Scheduler


def build_scheduler(
    session_factory: sessionmaker,
    config: Optional[Settings] = None,
    transport: Optional[MailTransport] = None,
) -> Scheduler:
    config = config or default_settings

    store = EventStore(session_factory)
    artifacts = ArtifactStore(config.UPLOAD_DIR, config.MAX_IMAGE_WIDTH)
    lifecycle = EventLifecycle(store, artifacts)
    notifier = Notifier(
        store=store,
        lifecycle=lifecycle,
        builder=BatchBuilder(artifacts, config.MAX_SUBMISSIONS_PER_EMAIL),
        renderer=EmailRenderer(),
        transport=transport or SMTPTransport(config),
    )

    return Scheduler(
        store=store,
        notifier=notifier,
        lifecycle=lifecycle,
        notification_hour=config.NOTIFICATION_HOUR,
        grace_days=config.CLEANUP_GRACE_DAYS,
        cleanup_hour=config.CLEANUP_HOUR,
        cleanup_interval_days=config.CLEANUP_INTERVAL_DAYS,
        task_timeout=config.SCHEDULER_TASK_TIMEOUT_SECONDS,
    )

"""
Event creation: slugs, optional fields and persistence
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from event_messenger.core.config import settings
from event_messenger.models import Event
from event_messenger.services.repositories import EventRepo
from event_messenger.utils.dates import event_date_to_utc

logger = logging.getLogger(__name__)


@dataclass
class EventOptions:
    """Optional event fields.

    Attributes:
        description: free text shown on the submission page, default empty
        coordinator_name: organizer shown in the email footer, default empty
        coordinator_contact: how contributors reach the organizer, default empty
        recipient_name: person the messages are for, default empty
        recipient_email: where the notification goes, default empty (nothing can be delivered)
        website_link: share link for contributors, default ``{BASE_URL}/events/{slug}/messages``
    """
    description: str = ""
    coordinator_name: str = ""
    coordinator_contact: str = ""
    recipient_name: str = ""
    recipient_email: str = ""
    website_link: str = ""


def slugify(text: str) -> str:
    slug = text.lower()
    slug = "".join(ch for ch in slug if ord(ch) < 128)
    slug = slug.replace(" ", "-").replace("_", "-")
    slug = re.sub(r"[^a-z0-9-]+", "", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def generate_unique_slug(db: Session, text: str) -> str:
    """URL-friendly slug for ``text``; taken slugs get -2, -3, ... appended"""
    base_slug = slugify(text) or "event"
    slug = base_slug
    counter = 2
    while EventRepo.slug_exists(db, slug):
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


def event_url(slug: str, base_url: Optional[str] = None) -> str:
    return f"{(base_url or settings.BASE_URL).rstrip('/')}/events/{slug}/messages"


def new_event(name: str, slug: str, event_date: date, options: Optional[EventOptions] = None) -> Event:
    """An unsaved, active, not yet notified event"""
    options = options or EventOptions()
    return Event(
        name=name,
        slug=slug,
        event_date=event_date_to_utc(event_date),
        description=options.description,
        coordinator_name=options.coordinator_name,
        coordinator_contact=options.coordinator_contact,
        recipient_name=options.recipient_name,
        recipient_email=options.recipient_email,
        website_link=options.website_link or event_url(slug),
        active=True,
        email_sent=False,
        email_sent_at=None,
    )


def create_event(db: Session, name: str, event_date: date, options: Optional[EventOptions] = None) -> Event:
    slug = generate_unique_slug(db, name)
    event = EventRepo.create(db, new_event(name, slug, event_date, options))
    logger.info(f"Event created: {event.name} (slug: {event.slug}, date: {event_date})")
    return event

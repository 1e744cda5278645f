"""
Repository layer over the SQLAlchemy models.

``EventRepo`` and ``SubmissionRepo`` work on a caller-owned ``Session`` (HTTP
handlers get one from ``get_db``). ``EventStore`` owns its sessions and is the
store handle injected into the lifecycle, notifier and scheduler.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from event_messenger.core.errors import PersistenceError
from event_messenger.models import Event, Submission
from event_messenger.schemas.event import EventPreview
from event_messenger.utils.dates import local_day_window

logger = logging.getLogger(__name__)


# -------- Event repository --------

class EventRepo:
    @staticmethod
    def get_by_id(db: Session, event_id: int) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def get_active_by_slug(db: Session, slug: str) -> Optional[Event]:
        return db.query(Event).filter(Event.slug == slug, Event.active == True).first()

    @staticmethod
    def slug_exists(db: Session, slug: str) -> bool:
        return db.query(Event.id).filter(Event.slug == slug).first() is not None

    @staticmethod
    def create(db: Session, event: Event) -> Event:
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def list_on_day(db: Session, day: date) -> List[Event]:
        start, end = local_day_window(day)
        return db.query(Event).filter(Event.event_date >= start, Event.event_date < end).all()

    @staticmethod
    def list_deletion_eligible(db: Session, grace_days: int, now: datetime) -> List[Event]:
        cutoff = now - timedelta(days=grace_days)
        return db.query(Event).filter(
            Event.email_sent == True,
            Event.active == False,
            Event.email_sent_at.isnot(None),
            Event.email_sent_at <= cutoff,
        ).all()

    @staticmethod
    def list_active_previews(db: Session) -> List[EventPreview]:
        rows = db.query(
            Event,
            func.count(Submission.id).label("submission_count")
        ).outerjoin(
            Submission, Submission.event_id == Event.id
        ).filter(
            Event.active == True
        ).group_by(Event.id).order_by(Event.event_date.desc()).all()

        return [
            EventPreview(
                id=event.id,
                name=event.name,
                slug=event.slug,
                description=event.description or "",
                event_date=event.event_date,
                recipient_name=event.recipient_name or "",
                submission_count=count,
            )
            for event, count in rows
        ]


# -------- Submission repository --------

class SubmissionRepo:
    @staticmethod
    def list_for_event(db: Session, event_id: int) -> List[Submission]:
        return db.query(Submission).filter(
            Submission.event_id == event_id
        ).order_by(Submission.created_at.desc(), Submission.id.desc()).all()

    @staticmethod
    def count_for_event(db: Session, event_id: int) -> int:
        return db.query(func.count(Submission.id)).filter(Submission.event_id == event_id).scalar()

    @staticmethod
    def create(db: Session, event_id: int, name: str, message: str, filename: str) -> Submission:
        submission = Submission(event_id=event_id, name=name, message=message, filename=filename)
        db.add(submission)
        db.commit()
        db.refresh(submission)
        return submission


# -------- Store handle used by the background pipeline --------

class EventStore:
    """Event/submission store with its own session per operation"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Error {action}: {e}") from e
        finally:
            session.close()

    def list_due_today(self, today: date) -> List[Event]:
        """Events dated on the local calendar day ``today``, sent or not"""
        with self._session("querying events for today") as db:
            return EventRepo.list_on_day(db, today)

    def list_deletion_eligible(self, grace_days: int, now: datetime) -> List[Event]:
        with self._session("querying events for deletion") as db:
            return EventRepo.list_deletion_eligible(db, grace_days, now)

    def list_submissions(self, event_id: int) -> List[Submission]:
        with self._session("querying submissions") as db:
            return SubmissionRepo.list_for_event(db, event_id)

    def update(self, event: Event) -> Event:
        with self._session(f"updating event {event.id}") as db:
            return db.merge(event)

    def delete(self, event_id: int) -> bool:
        """Delete an event and its submissions; False when it was already gone"""
        with self._session(f"deleting event {event_id}") as db:
            event = EventRepo.get_by_id(db, event_id)
            if event is None:
                return False
            db.delete(event)
            return True

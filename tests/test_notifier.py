"""
Tests for the notifier: build, render, send and mark notified
"""

import pytest
from datetime import date, datetime, timedelta

from event_messenger.core.db import Base, create_db_engine, create_session_factory
from event_messenger.core.errors import DeliveryError, PersistenceError, RenderError, StateUpdateError
from event_messenger.models import Event, Submission
from event_messenger.services.artifact_service import ArtifactStore
from event_messenger.services.batch_builder import BatchBuilder
from event_messenger.services.email_renderer import EmailRenderer
from event_messenger.services.event_service import EventOptions, new_event
from event_messenger.services.lifecycle import EventLifecycle, is_due_for_notification
from event_messenger.services.mail_service import MailTransport
from event_messenger.services.notifier import NotificationOutcome, Notifier
from event_messenger.services.repositories import EventStore

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_notifier.db"
engine = create_db_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = create_session_factory(engine)

TODAY = date(2025, 6, 15)
SENT_AT = datetime(2025, 6, 15, 8, 0, 5)

class RecordingTransport(MailTransport):
    """Collects sent mail instead of talking to an SMTP server"""

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, to_address, subject, html):
        if self.fail:
            raise DeliveryError("connection refused")
        self.sent.append((to_address, subject, html))

class BrokenRenderer:
    def render(self, batch):
        raise RenderError("template missing")

class UnwritableStore(EventStore):
    """Reads work, updates fail"""

    def update(self, event):
        raise PersistenceError("database is locked")

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def artifacts(tmp_path):
    return ArtifactStore(upload_dir=str(tmp_path))

@pytest.fixture
def event_with_submissions(db_session):
    """Event dated today with three messages"""
    event = new_event(
        "Team Farewell",
        "team-farewell",
        TODAY,
        EventOptions(recipient_name="Robin", recipient_email="robin@example.com", coordinator_name="Kim"),
    )
    db_session.add(event)
    db_session.flush()

    base = datetime(2025, 6, 10, 12, 0, 0)
    for i, (author, text) in enumerate([
        ("Ana", "Good luck in the new job"),
        ("Ben", "We will miss the Friday lunches"),
        ("Cleo", "Keep in touch"),
    ]):
        db_session.add(Submission(
            event_id=event.id,
            name=author,
            message=text,
            filename="",
            created_at=base + timedelta(hours=i),
        ))

    db_session.commit()
    db_session.expunge_all()
    return event

def build_notifier(store, artifacts, transport, renderer=None):
    return Notifier(
        store=store,
        lifecycle=EventLifecycle(store, artifacts),
        builder=BatchBuilder(artifacts, max_submissions=150),
        renderer=renderer or EmailRenderer(),
        transport=transport,
        clock=lambda: SENT_AT,
    )

def test_notify_sends_one_email_and_marks_event(db_session, artifacts, event_with_submissions):
    transport = RecordingTransport()
    notifier = build_notifier(EventStore(TestingSessionLocal), artifacts, transport)
    event = event_with_submissions

    outcome = notifier.notify(event)

    assert outcome is NotificationOutcome.SENT
    assert len(transport.sent) == 1
    to_address, subject, html = transport.sent[0]
    assert to_address == "robin@example.com"
    assert subject == "Your Team Farewell Messages"
    for text in ("Good luck in the new job", "We will miss the Friday lunches", "Keep in touch"):
        assert text in html
    for author in ("Ana", "Ben", "Cleo"):
        assert author in html

    stored = db_session.get(Event, event.id)
    assert stored.email_sent is True
    assert stored.active is False
    assert stored.email_sent_at == SENT_AT

def test_delivery_failure_leaves_event_due(db_session, artifacts, event_with_submissions):
    transport = RecordingTransport(fail=True)
    notifier = build_notifier(EventStore(TestingSessionLocal), artifacts, transport)
    event = event_with_submissions

    with pytest.raises(DeliveryError):
        notifier.notify(event)

    stored = db_session.get(Event, event.id)
    assert stored.email_sent is False
    assert stored.active is True
    assert stored.email_sent_at is None
    assert is_due_for_notification(stored, TODAY)

def test_render_failure_sends_nothing(db_session, artifacts, event_with_submissions):
    transport = RecordingTransport()
    notifier = build_notifier(EventStore(TestingSessionLocal), artifacts, transport, renderer=BrokenRenderer())

    with pytest.raises(RenderError):
        notifier.notify(event_with_submissions)

    assert transport.sent == []
    assert db_session.get(Event, event_with_submissions.id).email_sent is False

def test_state_write_failure_after_send_is_reported_distinctly(db_session, artifacts, event_with_submissions):
    transport = RecordingTransport()
    notifier = build_notifier(UnwritableStore(TestingSessionLocal), artifacts, transport)

    with pytest.raises(StateUpdateError):
        notifier.notify(event_with_submissions)

    # Sent once, but still due: the next run sends again
    assert len(transport.sent) == 1
    stored = db_session.get(Event, event_with_submissions.id)
    assert stored.email_sent is False
    assert is_due_for_notification(stored, TODAY)

def test_event_without_submissions_is_closed_without_email(db_session, artifacts):
    event = new_event("Quiet Day", "quiet-day", TODAY, EventOptions(recipient_email="q@example.com"))
    db_session.add(event)
    db_session.commit()
    db_session.expunge_all()

    transport = RecordingTransport()
    notifier = build_notifier(EventStore(TestingSessionLocal), artifacts, transport)

    outcome = notifier.notify(event)

    assert outcome is NotificationOutcome.EMPTY
    assert transport.sent == []
    stored = db_session.get(Event, event.id)
    assert stored.email_sent is True
    assert stored.active is False
    assert stored.email_sent_at == SENT_AT
    assert not is_due_for_notification(stored, TODAY)

def test_capped_email_mentions_total(db_session, artifacts):
    event = new_event("Big Party", "big-party", TODAY, EventOptions(recipient_email="big@example.com"))
    db_session.add(event)
    db_session.flush()
    for i in range(5):
        db_session.add(Submission(event_id=event.id, name=f"Guest {i}", message=f"Note {i}", filename=""))
    db_session.commit()
    db_session.expunge_all()

    transport = RecordingTransport()
    store = EventStore(TestingSessionLocal)
    notifier = Notifier(
        store=store,
        lifecycle=EventLifecycle(store, artifacts),
        builder=BatchBuilder(artifacts, max_submissions=2),
        renderer=EmailRenderer(),
        transport=transport,
        clock=lambda: SENT_AT,
    )

    notifier.notify(event)

    html = transport.sent[0][2]
    assert "5 people left you a message" in html
    assert "Showing the 2 most recent messages" in html

"""
Tests for the HTTP API: events, submissions and admin runs
"""

import io
import pytest
from datetime import date, timedelta
from fastapi.testclient import TestClient
from PIL import Image

from event_messenger.api.routes_contributor import get_artifact_store
from event_messenger.core.config import settings
from event_messenger.core.db import Base, create_db_engine, create_session_factory, get_db
from event_messenger.core.wiring import build_scheduler
from event_messenger.services.artifact_service import ArtifactStore
from event_messenger.services.mail_service import MailTransport
from event_messenger.utils.security import rate_limiter
from main import app

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_api.db"
engine = create_db_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = create_session_factory(engine)

ADMIN_TOKEN = "test-admin-token"

class RecordingTransport(MailTransport):
    def __init__(self):
        self.sent = []

    def send(self, to_address, subject, html):
        self.sent.append((to_address, subject, html))

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

def png_upload(width=1200, height=900):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color="navy").save(buffer, format="PNG")
    return buffer.getvalue()

@pytest.fixture
def transport():
    return RecordingTransport()

@pytest.fixture
def client(tmp_path, monkeypatch, transport):
    Base.metadata.create_all(bind=engine)
    rate_limiter.clear()
    monkeypatch.setattr(settings, "ADMIN_TOKEN", ADMIN_TOKEN)

    config = settings.model_copy(update={"UPLOAD_DIR": str(tmp_path)})
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_artifact_store] = lambda: ArtifactStore(upload_dir=str(tmp_path))
    app.state.scheduler = build_scheduler(TestingSessionLocal, config, transport=transport)

    # No context manager: the lifespan (and its background scheduler) stays off
    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.scheduler = None
    Base.metadata.drop_all(bind=engine)

def create(client, name="Farewell Alex", event_date=None, **fields):
    payload = {
        "name": name,
        "event_date": (event_date or date.today() + timedelta(days=14)).isoformat(),
        "recipient_name": "Alex",
        "recipient_email": "alex@example.com",
        "coordinator_name": "Jordan",
    }
    payload.update(fields)
    return client.post("/events", json=payload)

def submit(client, slug, name="Sam", message="All the best!", image=None):
    files = {"image": ("photo.png", image or png_upload(), "image/png")}
    return client.post(f"/events/{slug}/submissions", data={"name": name, "message": message}, files=files)

def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}

# -------- public --------

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

def test_create_event_returns_slug_and_share_url(client):
    response = create(client)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["slug"] == "farewell-alex"
    assert data["share_url"] == data["website_link"]
    assert data["website_link"].endswith("/events/farewell-alex/messages")
    assert "recipient_email" not in data

def test_create_event_in_the_past_is_rejected(client):
    response = create(client, event_date=date.today() - timedelta(days=1))

    assert response.status_code == 400
    assert response.json()["success"] is False

def test_create_event_requires_valid_email(client):
    response = create(client, recipient_email="not-an-email")
    assert response.status_code == 422

def test_create_event_rejects_blank_name(client):
    response = create(client, name="   ")
    assert response.status_code == 422

def test_list_events_includes_submission_counts(client):
    slug = create(client).json()["data"]["slug"]
    create(client, name="Other Party")
    submit(client, slug)

    response = client.get("/events")

    assert response.status_code == 200
    counts = {e["slug"]: e["submission_count"] for e in response.json()["data"]}
    assert counts == {"farewell-alex": 1, "other-party": 0}

def test_unknown_event_is_404(client):
    assert client.get("/events/nope").status_code == 404
    assert client.get("/events/nope/messages").status_code == 404
    assert client.get("/events/nope/qr.png").status_code == 404

def test_qr_code_is_png(client):
    slug = create(client).json()["data"]["slug"]

    response = client.get(f"/events/{slug}/qr.png")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG")

# -------- contributor --------

def test_submission_is_stored_and_listed(client, tmp_path):
    slug = create(client).json()["data"]["slug"]

    response = submit(client, slug, name="  Sam  ", message="Congratulations!")

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Sam"
    assert data["filename"].endswith("_photo.jpg")
    with Image.open(tmp_path / data["filename"]) as stored:
        assert stored.format == "JPEG"
        assert stored.size == (800, 600)

    messages = client.get(f"/events/{slug}/messages").json()["data"]
    assert messages["event_name"] == "Farewell Alex"
    assert [s["message"] for s in messages["submissions"]] == ["Congratulations!"]

def test_submission_requires_name_and_message(client):
    slug = create(client).json()["data"]["slug"]

    response = submit(client, slug, name="", message="Hi")

    assert response.status_code == 400

def test_submission_rejects_long_message(client):
    slug = create(client).json()["data"]["slug"]

    response = submit(client, slug, message="x" * (settings.MAX_MESSAGE_LENGTH + 1))

    assert response.status_code == 400

def test_submission_rejects_non_image(client):
    slug = create(client).json()["data"]["slug"]
    files = {"image": ("notes.txt", b"just some text", "text/plain")}

    response = client.post(f"/events/{slug}/submissions", data={"name": "Sam", "message": "Hi"}, files=files)

    assert response.status_code == 400
    assert client.get(f"/events/{slug}/messages").json()["data"]["submissions"] == []

def test_submission_requires_image(client):
    slug = create(client).json()["data"]["slug"]

    response = client.post(f"/events/{slug}/submissions", data={"name": "Sam", "message": "Hi"})

    assert response.status_code == 400

def test_submissions_are_rate_limited(client, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_PER_MINUTE", 2)
    slug = create(client).json()["data"]["slug"]
    small = png_upload(10, 10)

    assert submit(client, slug, image=small).status_code == 201
    assert submit(client, slug, image=small).status_code == 201
    assert submit(client, slug, image=small).status_code == 429

# -------- admin --------

def test_admin_endpoints_require_token(client):
    assert client.post("/admin/notifications/run").status_code in (401, 403)
    response = client.post("/admin/cleanup/run", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401

def test_manual_notification_run_sends_and_closes_event(client, transport):
    created = create(client, event_date=date.today()).json()["data"]
    submit(client, created["slug"], name="Sam", message="Happy day!", image=png_upload(20, 20))

    response = client.post("/admin/notifications/run", headers=admin_headers())

    assert response.status_code == 200
    summary = response.json()["data"]
    assert summary["task"] == "notification"
    assert summary["sent"] == 1
    assert summary["failed"] == 0
    assert len(transport.sent) == 1
    to_address, subject, html = transport.sent[0]
    assert to_address == "alex@example.com"
    assert subject == "Your Farewell Alex Messages"
    assert "Happy day!" in html
    assert "data:image/jpeg;base64," in html

    # Closed events disappear from the public pages but stay visible to admins
    assert client.get(f"/events/{created['slug']}").status_code == 404
    status = client.get(f"/admin/events/{created['id']}", headers=admin_headers()).json()["data"]
    assert status["email_sent"] is True
    assert status["active"] is False
    assert status["submission_count"] == 1

def test_manual_cleanup_run_reports_summary(client):
    response = client.post("/admin/cleanup/run", headers=admin_headers())

    assert response.status_code == 200
    summary = response.json()["data"]
    assert summary["task"] == "cleanup"
    assert summary["deleted"] == 0
    assert summary["aborted"] is False

def test_admin_event_status_unknown_is_404(client):
    assert client.get("/admin/events/999", headers=admin_headers()).status_code == 404

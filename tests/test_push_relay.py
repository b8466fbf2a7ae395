import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import peep.models  # noqa: F401
from main import app
from peep.core.firebase import PushDeliveryError, firebase_service
from peep.db.session import Base, get_db
from peep.models.user import Profile
from peep.services.push_relay import PEEP_TITLE

URL = "/functions/v1/send-peep-notification"


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sent(monkeypatch):
    messages = []

    def fake_send(token, title, body, data=None):
        messages.append({"token": token, "title": title, "body": body, "data": data})
        return f"projects/peep/messages/{len(messages)}"

    monkeypatch.setattr(firebase_service, "send_push_notification", fake_send)
    return messages


def add_profile(db, username, push_token=None) -> str:
    profile = Profile(id=uuid.uuid4(), username=username, push_token=push_token)
    db.add(profile)
    db.commit()
    return str(profile.id)


def test_relay_sends_peep_to_receiver(client, db, sent):
    alice = add_profile(db, "alice")
    bob = add_profile(db, "bob", push_token="bob-device")

    response = client.post(URL, json={
        "from_user_id": alice, "to_user_id": bob, "friendly_name": "Watching YouTube 📺",
    })

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["message_id"] == "projects/peep/messages/1"
    assert sent[0]["token"] == "bob-device"
    assert sent[0]["title"] == PEEP_TITLE
    assert sent[0]["body"] == "alice saw you Watching YouTube 📺"
    assert sent[0]["data"]["type"] == "peep"


def test_relay_accepts_webhook_envelope(client, db, sent):
    alice = add_profile(db, "alice")
    bob = add_profile(db, "bob", push_token="bob-device")

    response = client.post(URL, json={
        "type": "INSERT",
        "table": "peeps",
        "record": {"from_user_id": alice, "to_user_id": bob, "friendly_name": None},
    })

    assert response.json()["success"] is True
    assert sent[0]["body"] == "alice saw you using your phone"


def test_unknown_peeper_is_someone(client, db, sent):
    bob = add_profile(db, "bob", push_token="bob-device")

    client.post(URL, json={"from_user_id": str(uuid.uuid4()), "to_user_id": bob, "friendly_name": "x"})

    assert sent[0]["body"] == "Someone saw you x"


def test_receiver_without_token_gets_nothing(client, db, sent):
    alice = add_profile(db, "alice")
    bob = add_profile(db, "bob")

    response = client.post(URL, json={"from_user_id": alice, "to_user_id": bob})

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["error"] == "No push token for target user"
    assert sent == []


def test_delivery_failure_is_500(client, db, monkeypatch):
    alice = add_profile(db, "alice")
    bob = add_profile(db, "bob", push_token="stale")

    def failing_send(**kwargs):
        raise PushDeliveryError("Failed to send notification: Requested entity was not found.")

    monkeypatch.setattr(firebase_service, "send_push_notification", failing_send)
    response = client.post(URL, json={"from_user_id": alice, "to_user_id": bob})

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert "not found" in response.json()["error"]


def test_invalid_payload_is_422(client):
    response = client.post(URL, json={"to_user_id": "x"})

    assert response.status_code == 422
    assert response.json()["success"] is False


def test_health(client):
    assert client.get("/api/health").json() == {"status": "healthy"}

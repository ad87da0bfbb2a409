"""Pytest configuration and shared fixtures."""
import os

os.environ.setdefault("ENVIRONMENT", "test")

import json
import threading
import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

from roleplay_tutor.domain.conversation import ConversationTurn, TurnRole


class FakePipeline:
    """Transaction pipeline handed to ``FakeRedis.transaction`` callbacks."""

    def __init__(self, client):
        self.client = client

    def get(self, key):
        return self.client.get(key)

    def set(self, key, value, keepttl=False):
        return self.client.set(key, value, keepttl=keepttl)

    def delete(self, *keys):
        return self.client.delete(*keys)

    def multi(self):
        pass


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the code store uses.

    ``transaction`` runs callbacks one at a time, the outcome WATCH/MULTI
    retries give a real server.
    """

    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.watched = []
        self._lock = threading.Lock()

    def transaction(self, func, *watches, value_from_callable=False):
        with self._lock:
            self.watched.extend(watches)
            result = func(FakePipeline(self))
        return result if value_from_callable else []

    def ping(self):
        return True

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    def set(self, key, value, keepttl=False):
        self.data[key] = value
        if not keepttl:
            self.ttls.pop(key, None)
        return True

    def delete(self, *keys):
        deleted = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                self.ttls.pop(key, None)
                deleted += 1
        return deleted

    def entry(self, email):
        raw = self.data.get(f"otp:{email.lower()}")
        return json.loads(raw) if raw else None


@pytest.fixture(autouse=True)
def fake_redis():
    """Auto-mock Redis for all tests to avoid needing real Redis."""
    client = FakeRedis()
    with patch("roleplay_tutor.infrastructure.redis.get_redis_client", return_value=client), \
         patch("roleplay_tutor.infrastructure.redis._otp_store", None):
        yield client


@pytest.fixture(autouse=True)
def mock_llm():
    """Auto-mock the Gemini completion in every service that calls it."""
    mock = AsyncMock(return_value="{}")
    targets = [
        "roleplay_tutor.services.guided.complete_chat",
        "roleplay_tutor.services.interview.complete_chat",
        "roleplay_tutor.services.feedback.complete_chat",
        "roleplay_tutor.services.tutor_chat.complete_chat",
        "roleplay_tutor.services.translation.complete_chat",
    ]
    patchers = [patch(target, mock) for target in targets]
    for p in patchers:
        p.start()
    yield mock
    for p in patchers:
        p.stop()


@pytest.fixture
def llm_reply(mock_llm):
    """Set the next model reply from a dict (JSON-encoded) or a raw string."""
    def _set(reply):
        mock_llm.return_value = reply if isinstance(reply, str) else json.dumps(reply)
        return mock_llm
    return _set


@pytest.fixture
def interview_history():
    """History of a free interview after the company and position answers."""
    return [
        ConversationTurn(role=TurnRole.TUTOR, text="Hello, Giulia! Welcome to your interview practice session. Let's get started!"),
        ConversationTurn(role=TurnRole.TUTOR, text="What company are you going to apply to?"),
        ConversationTurn(role=TurnRole.USER, text="Ferrari"),
        ConversationTurn(role=TurnRole.TUTOR, text="What position are you going to apply for?"),
        ConversationTurn(role=TurnRole.USER, text="Software engineer"),
    ]


@pytest.fixture
def test_client():
    """FastAPI test client."""
    from main import app
    return TestClient(app)

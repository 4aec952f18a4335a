"""
Shared fixtures: an app wired to the in-memory store, an SQLite-backed app,
a recording notifier and a controllable clock.
"""
import re
from datetime import datetime, timedelta, timezone

import pytest

from app import create_app
from config import TestingConfig
from db import db
from services.notifier import Notifier
from services.user_store import MemoryUserStore

_CODE_RE = re.compile(r"\b(\d{6})\b")


class RecordingNotifier(Notifier):
    def __init__(self, ok=True, raises=None):
        self.sent = []
        self.ok = ok
        self.raises = raises

    def send(self, to, subject, text, html=None):
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})
        if self.raises is not None:
            raise self.raises
        return self.ok

    def last_code(self):
        for msg in reversed(self.sent):
            m = _CODE_RE.search(msg["text"])
            if m:
                return m.group(1)
        return None


class FrozenClock:
    def __init__(self, now=None):
        self.now = now or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def store():
    return MemoryUserStore()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def app(store, notifier):
    return create_app(TestingConfig, store=store, notifier=notifier)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def service(app):
    return app.extensions["auth_service"]


@pytest.fixture
def sql_app(notifier):
    app = create_app(TestingConfig, notifier=notifier)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def sql_client(sql_app):
    return sql_app.test_client()

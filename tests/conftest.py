from __future__ import annotations

import os

# Settings are read at import time by config.env
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "5")
os.environ.pop("SMTP_HOST", None)

import pytest

from utils.auth_service import AuthService

from .helpers.fakes import FakeClock, FakeSellerStore, FakeSessionStore, RecordingNotifier


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return FakeSellerStore()


@pytest.fixture
def sessions():
    return FakeSessionStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def auth(store, sessions, notifier, clock):
    return AuthService(store, sessions, notifier, clock=clock)

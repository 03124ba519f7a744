# tests/conftest.py
import random
from datetime import datetime, timezone

import pytest

from speakcoach import config
from speakcoach.database import MemoryStore
from speakcoach.logger import logger
from speakcoach.models import Phrase
from speakcoach.recognition import ScriptedRecognizer
from speakcoach.session import PracticeSession


class _Handle:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Collects timers so tests decide when they fire."""

    def __init__(self):
        self.scheduled = []

    def call_later(self, delay, callback):
        handle = _Handle(delay, callback)
        self.scheduled.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self.scheduled if not h.cancelled]

    def fire_next(self):
        handle = self.pending[0]
        self.scheduled.remove(handle)
        handle.callback()
        return handle


@pytest.fixture(autouse=True)
def quiet_and_offline(monkeypatch):
    # Never pick up a real key from the environment; keep test output clean
    monkeypatch.setattr(config, "GROQ_API_KEY", None)
    monkeypatch.setattr(config, "FIREBASE_CREDENTIALS_PATH", None)
    monkeypatch.setattr(logger, "enabled", False)


@pytest.fixture()
def fixed_now():
    return datetime(2025, 10, 20, 15, 30, 0, tzinfo=timezone.utc)


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def notices():
    return []


@pytest.fixture()
def recognizer():
    return ScriptedRecognizer()


@pytest.fixture()
def make_session(store, rng, scheduler, notices, recognizer, fixed_now):
    def _make(phrase=None, backing_store=None, **overrides):
        kwargs = dict(
            recognizer=recognizer,
            rng=rng,
            scheduler=scheduler,
            listener=notices.append,
            clock=lambda: fixed_now,
        )
        kwargs.update(overrides)
        session = PracticeSession(backing_store or store, **kwargs)
        if phrase is not None:
            session.current_phrase = Phrase(text=phrase, language=session.practice_language)
        return session

    return _make

import os
import sys

import pytest
from flask import g, has_app_context
from flask.testing import FlaskClient

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from config import Config
from meetingai import create_app
from meetingai.extensions import db


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    REDIS_URL = None
    STORAGE_BACKEND = "local"
    APP_URL = "http://testserver"
    ASSEMBLYAI_API_KEY = None
    OPENAI_API_KEY = None
    HUGGINGFACE_API_KEY = None
    SENDGRID_API_KEY = None
    WEBHOOK_SECRET = None
    CRON_SECRET = None


class ApiTestClient(FlaskClient):
    """Test client that reloads the logged-in user on every request.

    The fixture app context stays pushed for the whole test and Flask reuses it
    for test requests, so Flask-Login's per-request user cache in ``g`` would
    otherwise carry one client's user into another client's request.
    """

    def open(self, *args, **kwargs):
        if has_app_context():
            g.pop("_login_user", None)
        return super().open(*args, **kwargs)


class FakeTranscriber:
    """Stands in for AssemblyAIClient; records every provider call."""

    def __init__(self, result=None):
        self.result = result or {"status": "processing"}
        self.uploads = []
        self.created = []
        self.fetched = []
        self.on_create = None
        self._next_id = 0

    def upload(self, data):
        self.uploads.append(data)
        return f"https://cdn.assemblyai.test/upload/{len(self.uploads)}"

    def create_transcript(self, audio_url, webhook_url=None, webhook_auth=None, **options):
        self._next_id += 1
        self.created.append({"audio_url": audio_url, "webhook_url": webhook_url, "webhook_auth": webhook_auth})
        if self.on_create:
            self.on_create()
        return {"id": f"tx_{self._next_id}", "status": "queued"}

    def get_transcript(self, transcript_id):
        self.fetched.append(transcript_id)
        return dict(self.result, id=transcript_id)


class FakeSummarizer:
    def __init__(self, fail=False):
        self.fail = fail
        self.summaries = 0
        self.translations = []

    def generate_summary(self, transcript, participants=None):
        self.summaries += 1
        if self.fail:
            raise RuntimeError("model unavailable")
        return {"overview": "Quarterly planning.", "key_points": ["Budget agreed"], "decisions": ["Ship in May"],
                "next_steps": ["Draft roadmap"]}

    def extract_action_items(self, transcript, summary, participants=None):
        return [{"id": "action-1-0", "task": "Draft roadmap", "assignee": "Speaker A", "due_date": None,
                 "priority": "high", "completed": False}]

    def translate(self, content, language_name):
        self.translations.append(language_name)
        return {k: f"[{language_name}] {v}" if isinstance(v, str) else v for k, v in content.items()}


def completed_result(utterances=None, text=None, duration=125.4):
    utterances = [
        {"speaker": "A", "start": 0, "end": 4000, "text": "Welcome everyone to the planning meeting today."},
        {"speaker": "B", "start": 4200, "end": 9000, "text": "Thanks, I have the budget numbers ready to share."},
        {"speaker": "A", "start": 9100, "end": 12000, "text": "Great, let's go through them together now."},
    ] if utterances is None else utterances
    return {
        "status": "completed",
        "text": text if text is not None else " ".join(u["text"] for u in utterances),
        "utterances": utterances,
        "language_code": "en",
        "audio_duration": duration,
    }


@pytest.fixture
def make_app(tmp_path):
    created = []

    def factory(**overrides):
        overrides.setdefault("LOCAL_STORAGE_DIR", str(tmp_path / "storage"))
        app = create_app(TestConfig, **overrides)
        app.test_client_class = ApiTestClient
        ctx = app.app_context()
        ctx.push()
        db.create_all()
        created.append(ctx)
        return app

    yield factory

    for ctx in reversed(created):
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def transcriber(app):
    fake = FakeTranscriber()
    app.extensions["assemblyai"] = fake
    return fake


def signup(client, email, name=None):
    r = client.post("/auth/signup", json={"email": email, "password": "password123", "name": name})
    assert r.status_code == 201, r.get_json()
    return r.get_json()


@pytest.fixture
def client(app):
    c = app.test_client()
    c.user = signup(c, "owner@example.com", "Owner")
    return c


@pytest.fixture
def other_client(app):
    c = app.test_client()
    c.user = signup(c, "guest@example.com", "Guest")
    return c


@pytest.fixture
def meeting(client):
    r = client.post("/meetings", json={"title": "Planning sync", "audio_url": "https://files.test/planning.mp3"})
    assert r.status_code == 201
    return r.get_json()


class FakeHandle:
    def __init__(self, delay, fn, args):
        self.delay = delay
        self.fn = fn
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual clock for ``call_later``; tests fire timers with ``run_next``."""

    def __init__(self):
        self.handles = []

    def call_later(self, delay, fn, *args):
        handle = FakeHandle(delay, fn, args)
        self.handles.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self.handles if not h.cancelled and not getattr(h, "fired", False)]

    def run_next(self):
        handle = self.pending[0]
        handle.fired = True
        handle.fn(*handle.args)
        return handle

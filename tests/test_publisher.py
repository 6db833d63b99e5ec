import json

import pytest

from conftest import completed_result
from meetingai.extensions import db
from meetingai.models import Meeting
from meetingai.realtime.publisher import ChangePublisher, channels_for


class FakeRedis:
    def __init__(self):
        self.messages = []

    def publish(self, channel, payload):
        self.messages.append((channel, json.loads(payload)))

    def events(self, channel):
        return [m for c, m in self.messages if c == channel]


@pytest.fixture
def redis(app):
    fake = FakeRedis()
    app.extensions["change_publisher"] = ChangePublisher(fake)
    return fake


def test_channels_for_rows():
    assert channels_for("meetings", {"id": "m1", "user_id": 7}) == ["meetings:m1", "meetings:user:7"]
    assert channels_for("meeting_insights", {"meeting_id": "m1"}) == ["meetings:m1"]


def test_insert_and_update_are_published_after_commit(client, redis):
    meeting = client.post("/meetings", json={"title": "Kickoff"}).get_json()
    user_channel = f"meetings:user:{client.user['id']}"

    inserts = redis.events(user_channel)
    assert len(inserts) == 1
    assert inserts[0]["type"] == "INSERT"
    assert inserts[0]["new"]["title"] == "Kickoff"
    assert redis.events(f"meetings:{meeting['id']}")[0]["type"] == "INSERT"

    client.patch(f"/meetings/{meeting['id']}", json={"title": "Kickoff v2"})
    event = redis.events(user_channel)[-1]
    assert event["type"] == "UPDATE"
    assert event["new"]["title"] == "Kickoff v2"
    assert event["old"]["title"] == "Kickoff"


def test_rolled_back_changes_are_not_published(client, redis):
    db.session.add(Meeting(user_id=client.user["id"], title="Draft"))
    db.session.flush()
    db.session.rollback()
    assert redis.messages == []


def test_transcript_write_publishes_transition(client, redis, transcriber, meeting):
    client.post(f"/meetings/{meeting['id']}/transcribe")
    client.post(f"/webhooks/assemblyai?meeting_id={meeting['id']}", json=dict(completed_result(), transcript_id="tx_1"))

    updates = [e for e in redis.events(f"meetings:{meeting['id']}") if e["type"] == "UPDATE"]
    started, finished = updates[-2], updates[-1]
    assert started["old"]["transcript_id"] is None
    assert started["new"]["transcript_id"] == "tx_1"
    assert finished["old"]["transcript"] is None
    assert finished["new"]["transcript"].startswith("Speaker A:")
    assert finished["new"]["transcript_id"] is None


def test_without_redis_nothing_is_sent(client):
    publisher = client.application.extensions["change_publisher"]
    assert publisher.redis is None
    assert client.post("/meetings", json={"title": "Quiet"}).status_code == 201

import pytest

from meetingai.realtime.notes_sync import CollaborativeNotesSession, LocalBroadcast, NotesSync, storage_key

ALICE = {"name": "Alice", "color": "#3b82f6", "sessionId": "sess-alice"}
BOB = {"name": "Bob", "color": "#10b981", "sessionId": "sess-bob"}


@pytest.fixture
def share_token(client, meeting):
    r = client.post(f"/meetings/{meeting['id']}/share", json={"expiresIn": "24h"})
    assert r.status_code == 201
    return r.get_json()["shareToken"]


def write(client, meeting_id, token, content, editor):
    return client.post("/public/notes", json={"meeting_id": meeting_id, "share_token": token, "content": content,
                                              "last_edited_by": editor})


def test_notes_default_when_nothing_written(app, meeting, share_token):
    r = app.test_client().get(f"/public/notes?meeting_id={meeting['id']}&share_token={share_token}")
    assert r.status_code == 200
    assert r.get_json() == {"content": "", "last_edited_by": None, "version": 0}


def test_last_writer_wins(app, meeting, share_token):
    anon = app.test_client()
    first = write(anon, meeting["id"], share_token, "Agenda: budget", ALICE)
    assert first.status_code == 200
    assert first.get_json()["version"] == 1

    # Bob started from the empty document; his write still replaces Alice's
    second = write(anon, meeting["id"], share_token, "Agenda: hiring", BOB)
    assert second.get_json()["version"] == 2

    stored = anon.get(f"/public/notes?meeting_id={meeting['id']}&share_token={share_token}").get_json()
    assert stored["content"] == "Agenda: hiring"
    assert stored["version"] == 2
    assert stored["last_edited_by"]["sessionId"] == "sess-bob"


def test_notes_validation(app, meeting, share_token):
    anon = app.test_client()
    r = write(anon, meeting["id"], share_token, "x" * 50001, ALICE)
    assert r.status_code == 400
    assert r.get_json()["code"] == "VALIDATION_ERROR"

    r = write(anon, meeting["id"], "not-a-token", "hi", ALICE)
    assert r.status_code == 400

    r = write(anon, "another-meeting", share_token, "hi", ALICE)
    assert r.status_code == 400
    assert r.get_json()["code"] == "INVALID_MEETING"

    unknown = "0" * 8 if share_token != "0" * 8 else "1" * 8
    r = write(anon, meeting["id"], unknown, "hi", ALICE)
    assert r.status_code == 404
    assert r.get_json()["code"] == "INVALID_SHARE"

    r = anon.get("/public/notes")
    assert r.status_code == 400
    assert r.get_json()["code"] == "MISSING_PARAMS"


def test_public_routes_reject_non_object_bodies(app, meeting, share_token):
    anon = app.test_client()
    for url in ("/public/notes", "/public/annotations", f"/public/shares/{share_token}"):
        r = anon.post(url, json=["x"])
        assert r.status_code == 400, url
        assert r.get_json()["code"] == "VALIDATION_ERROR", url


def test_notes_sync_versions():
    sync = NotesSync(now=lambda: "2024-05-01T10:00:00Z")
    assert sync.state("abcd1234") == {"content": "", "editedBy": None, "version": 0,
                                      "updatedAt": "2024-05-01T10:00:00Z"}
    sync.update("abcd1234", "one", ALICE)
    state = sync.update("abcd1234", "two", BOB)
    assert state["version"] == 2
    assert state["content"] == "two"
    assert state["editedBy"] == BOB


class FakeNotesApi:
    def __init__(self, fail=False):
        self.saved = []
        self.fail = fail
        self.row = {"content": "Stored notes", "last_edited_by": ALICE, "version": 4,
                    "updated_at": "2024-05-01T09:00:00Z"}

    def get_notes(self, meeting_id, share_token):
        return self.row

    def save_notes(self, meeting_id, share_token, content, editor):
        if self.fail:
            raise ConnectionError("fetch failed")
        self.saved.append((content, editor["sessionId"]))
        return {"content": content, "version": len(self.saved) + 10, "updated_at": "2024-05-01T10:00:00Z"}


def test_sessions_mirror_each_other():
    broadcast = LocalBroadcast()
    api = FakeNotesApi()
    seen_by_bob, seen_by_alice = [], []
    alice = CollaborativeNotesSession(api, "m1", "abcd1234", ALICE, broadcast=broadcast,
                                      on_remote_change=seen_by_alice.append)
    bob = CollaborativeNotesSession(api, "m1", "abcd1234", BOB, broadcast=broadcast,
                                    on_remote_change=seen_by_bob.append)

    assert alice.load()["version"] == 4
    assert alice.content == "Stored notes"

    state = alice.edit("Decisions: ship Friday")
    assert state["version"] == 11
    assert api.saved == [("Decisions: ship Friday", "sess-alice")]
    assert bob.content == "Decisions: ship Friday"
    assert seen_by_bob[0]["editedBy"] == ALICE
    # a session ignores its own mirrored write
    assert seen_by_alice == []
    assert broadcast.get(storage_key("abcd1234"))["content"] == "Decisions: ship Friday"

    bob.close()
    alice.edit("Decisions: ship Monday")
    assert len(seen_by_bob) == 1


def test_failed_save_keeps_local_edit():
    session = CollaborativeNotesSession(FakeNotesApi(fail=True), "m1", "abcd1234", ALICE,
                                        broadcast=LocalBroadcast())
    state = session.edit("offline draft")
    assert state["version"] == 1
    assert session.content == "offline draft"

import io
import os

from sqlalchemy import update

from conftest import FakeSummarizer, FakeTranscriber, completed_result, signup
from meetingai.extensions import db
from meetingai.jobs.transcription import webhook_token
from meetingai.models import Meeting


def upload_recording(client, name="standup.mp3"):
    r = client.post("/upload", data={"file": (io.BytesIO(b"ID3\x03fake-audio-bytes"), name, "audio/mpeg")},
                    content_type="multipart/form-data")
    assert r.status_code == 201, r.get_json()
    return r.get_json()["meeting"]


def test_upload_creates_meeting(client):
    r = client.post("/upload", data={"file": (io.BytesIO(b"ID3data"), "weekly sync.mp3", "audio/mpeg")},
                    content_type="multipart/form-data")
    assert r.status_code == 201
    body = r.get_json()
    assert body["originalName"] == "weekly_sync.mp3"
    assert body["meeting"]["title"] == "weekly_sync"
    assert body["meeting"]["audio_url"].startswith("file://")
    assert body["path"].endswith(".mp3")


def test_upload_rejects_bad_files(client):
    r = client.post("/upload", data={}, content_type="multipart/form-data")
    assert r.status_code == 400
    assert r.get_json()["code"] == "NO_FILE"

    r = client.post("/upload", data={"file": (io.BytesIO(b"hello"), "notes.txt", "text/plain")},
                    content_type="multipart/form-data")
    assert r.status_code == 400
    assert r.get_json()["code"] == "INVALID_FILE"

    r = client.post("/upload", data={"file": (io.BytesIO(b"x"), "clip.wav", "audio/mpeg")},
                    content_type="multipart/form-data")
    assert r.get_json()["code"] == "INVALID_FILE"


def test_failed_meeting_insert_removes_stored_audio(app, client, monkeypatch):
    def broken_commit():
        raise RuntimeError("database is locked")

    monkeypatch.setattr(db.session, "commit", broken_commit)
    r = client.post("/upload", data={"file": (io.BytesIO(b"ID3data"), "retro.mp3", "audio/mpeg")},
                    content_type="multipart/form-data")
    assert r.status_code == 500
    assert r.get_json()["code"] == "UPLOAD_ERROR"

    stored = [name for _, _, files in os.walk(app.config["LOCAL_STORAGE_DIR"]) for name in files]
    assert stored == []


def test_upload_requires_login(app):
    r = app.test_client().post("/upload")
    assert r.status_code == 401
    assert r.get_json()["code"] == "AUTH_REQUIRED"


def test_start_transcription_records_job(client, transcriber):
    meeting = upload_recording(client)
    r = client.post(f"/meetings/{meeting['id']}/transcribe")
    assert r.status_code == 202
    assert r.get_json() == {"transcriptId": "tx_1", "status": "pending"}

    # local files are pushed to the provider first
    assert len(transcriber.uploads) == 1
    assert transcriber.created[0]["audio_url"].startswith("https://cdn.assemblyai.test/")
    assert transcriber.created[0]["webhook_url"] == f"http://testserver/webhooks/assemblyai?meeting_id={meeting['id']}"
    assert transcriber.created[0]["webhook_auth"] is None

    detail = client.get(f"/meetings/{meeting['id']}").get_json()
    assert detail["transcript_id"] == "tx_1"
    assert detail["transcriptionState"] == "queued"


def test_second_start_is_rejected_without_provider_call(client, transcriber, meeting):
    assert client.post(f"/meetings/{meeting['id']}/transcribe").status_code == 202
    r = client.post(f"/meetings/{meeting['id']}/transcribe")
    assert r.status_code == 409
    body = r.get_json()
    assert body["code"] == "ALREADY_TRANSCRIBING"
    assert body["details"] == {"transcriptId": "tx_1"}
    assert len(transcriber.created) == 1
    # remote URLs are handed over as is
    assert transcriber.uploads == []


def test_concurrent_start_loses_conditional_update(client, transcriber, meeting):
    def racing_start():
        db.session.execute(update(Meeting).where(Meeting.id == meeting["id"]).values(transcript_id="tx_other"))
        db.session.commit()

    transcriber.on_create = racing_start
    r = client.post(f"/meetings/{meeting['id']}/transcribe")
    assert r.status_code == 409
    assert r.get_json()["code"] == "ALREADY_TRANSCRIBING"
    assert db.session.get(Meeting, meeting["id"]).transcript_id == "tx_other"


def test_start_requires_audio(client, transcriber):
    meeting = client.post("/meetings", json={"title": "No recording"}).get_json()
    r = client.post(f"/meetings/{meeting['id']}/transcribe")
    assert r.status_code == 400
    assert r.get_json()["code"] == "NO_AUDIO"


def test_start_without_provider_is_unavailable(client, meeting):
    r = client.post(f"/meetings/{meeting['id']}/transcribe")
    assert r.status_code == 503
    assert r.get_json()["code"] == "SERVICE_UNAVAILABLE"


def test_other_users_meeting_is_not_found(other_client, transcriber, meeting):
    r = other_client.post(f"/meetings/{meeting['id']}/transcribe")
    assert r.status_code == 404
    assert transcriber.created == []


def test_status_check_completes_once(app, client, transcriber, meeting):
    summarizer = FakeSummarizer()
    app.extensions["summarizer"] = summarizer
    client.post(f"/meetings/{meeting['id']}/transcribe")

    transcriber.result = {"status": "processing"}
    r = client.get(f"/meetings/{meeting['id']}/transcription-status")
    assert r.get_json() == {"status": "processing", "hasTranscript": False}

    transcriber.result = completed_result()
    first = client.get(f"/meetings/{meeting['id']}/transcription-status").get_json()
    second = client.post(f"/meetings/{meeting['id']}/transcription-status").get_json()

    assert first["status"] == second["status"] == "completed"
    assert first["hasTranscript"] and second["hasTranscript"]
    # the second check is answered from the stored transcript
    assert len(transcriber.fetched) == 2
    assert summarizer.summaries == 1

    detail = client.get(f"/meetings/{meeting['id']}").get_json()
    assert detail["transcript_id"] is None
    assert detail["participants"] == ["Speaker A", "Speaker B"]
    assert detail["duration"] == 125
    assert detail["language"] == "en"
    assert detail["summary"]["overview"] == "Quarterly planning."
    assert detail["action_items"][0]["task"] == "Draft roadmap"


def test_status_not_started(client, meeting):
    r = client.get(f"/meetings/{meeting['id']}/transcription-status")
    assert r.get_json() == {"status": "not_started", "hasTranscript": False}


def test_failed_job_can_be_cleared_and_restarted(client, transcriber, meeting):
    client.post(f"/meetings/{meeting['id']}/transcribe")
    transcriber.result = {"status": "error", "error": "Audio file is corrupt"}

    r = client.get(f"/meetings/{meeting['id']}/transcription-status")
    assert r.get_json() == {"status": "error", "hasTranscript": False, "error": "Audio file is corrupt"}
    assert client.get(f"/meetings/{meeting['id']}").get_json()["transcript_id"] == "tx_1"

    r = client.delete(f"/meetings/{meeting['id']}/transcription")
    assert r.get_json()["status"] == "not_started"
    r = client.post(f"/meetings/{meeting['id']}/transcribe")
    assert r.status_code == 202
    assert r.get_json()["transcriptId"] == "tx_2"


def test_completion_without_speech_is_an_error(app, client, transcriber, meeting):
    summarizer = FakeSummarizer()
    app.extensions["summarizer"] = summarizer
    client.post(f"/meetings/{meeting['id']}/transcribe")
    transcriber.result = completed_result(utterances=[], text="")

    url = f"/meetings/{meeting['id']}/transcription-status"
    first = client.get(url).get_json()
    second = client.get(url).get_json()
    assert first == second
    assert first["status"] == "error"
    assert first["hasTranscript"] is False

    m = db.session.get(Meeting, meeting["id"])
    assert m.transcript is None
    assert m.transcript_id == "tx_1"
    assert summarizer.summaries == 0

    r = client.post(f"/webhooks/assemblyai?meeting_id={meeting['id']}",
                    json={"transcript_id": "tx_1", "status": "completed", "text": "", "utterances": []})
    assert r.get_json()["status"] == "error"
    assert r.get_json()["persisted"] is False

    # a retry goes through the normal clear-and-restart path
    assert client.delete(f"/meetings/{meeting['id']}/transcription").status_code == 200
    r = client.post(f"/meetings/{meeting['id']}/transcribe")
    assert r.status_code == 202
    assert r.get_json()["transcriptId"] == "tx_2"
    assert len(transcriber.created) == 2


def test_webhook_end_to_end(client, transcriber):
    meeting = upload_recording(client)
    client.post(f"/meetings/{meeting['id']}/transcribe")

    payload = dict(completed_result(), transcript_id="tx_1")
    r = client.post(f"/webhooks/assemblyai?meeting_id={meeting['id']}", json=payload)
    assert r.status_code == 200
    body = r.get_json()
    assert body["received"] is True
    assert body["persisted"] is True
    assert body["duplicate"] is False

    detail = client.get(f"/meetings/{meeting['id']}").get_json()
    assert detail["participants"] == ["Speaker A", "Speaker B"]
    assert detail["transcript_id"] is None
    assert detail["transcript"].startswith("Speaker A: Welcome everyone")
    assert len(detail["utterances"]) == 3
    assert detail["transcriptionState"] == "completed"

    # a replayed delivery changes nothing
    r = client.post(f"/webhooks/assemblyai?meeting_id={meeting['id']}", json=payload)
    assert r.get_json()["duplicate"] is True
    # and the status check does not hit the provider
    assert client.get(f"/meetings/{meeting['id']}/transcription-status").get_json()["status"] == "completed"
    assert transcriber.fetched == []


def test_webhook_without_speakers(client, transcriber, meeting):
    client.post(f"/meetings/{meeting['id']}/transcribe")
    r = client.post(f"/webhooks/assemblyai?meeting_id={meeting['id']}",
                    json={"transcript_id": "tx_1", "status": "completed", "text": "Just one voice.",
                          "utterances": []})
    assert r.get_json()["persisted"] is True

    detail = client.get(f"/meetings/{meeting['id']}").get_json()
    assert detail["participants"] == ["Unknown Speaker"]
    assert detail["transcript"] == "Just one voice."


def test_webhook_fetches_missing_body(client, transcriber, meeting):
    client.post(f"/meetings/{meeting['id']}/transcribe")
    transcriber.result = completed_result()
    r = client.post(f"/webhooks/assemblyai?meeting_id={meeting['id']}",
                    json={"transcript_id": "tx_1", "status": "completed"})
    assert r.get_json()["persisted"] is True
    assert transcriber.fetched == ["tx_1"]


def test_webhook_acknowledges_non_terminal_and_unknown(client, transcriber):
    r = client.post("/webhooks/assemblyai", json={"transcript_id": "tx_9", "status": "processing"})
    assert r.status_code == 200
    assert r.get_json() == {"received": True, "status": "processing"}

    r = client.post("/webhooks/assemblyai", json={"transcript_id": "tx_9", "status": "error", "error": "boom"})
    assert r.get_json()["status"] == "error"

    r = client.post("/webhooks/assemblyai?meeting_id=missing", json=dict(completed_result(), transcript_id="tx_9"))
    assert r.status_code == 200
    assert r.get_json()["persisted"] is False


def test_webhook_rejects_malformed_payload(client):
    r = client.post("/webhooks/assemblyai", json={"status": "completed"})
    assert r.status_code == 400
    assert r.get_json()["code"] == "WEBHOOK_ERROR"

    r = client.post("/webhooks/assemblyai", json={"transcript_id": "tx_1", "status": "completed"})
    assert r.status_code == 400


def test_webhook_token_is_checked_when_secret_set(make_app):
    app = make_app(WEBHOOK_SECRET="s3cret")
    transcriber = FakeTranscriber()
    app.extensions["assemblyai"] = transcriber
    client = app.test_client()
    signup(client, "hooks@example.com")
    meeting = client.post("/meetings", json={"title": "Signed", "audio_url": "https://files.test/a.mp3"}).get_json()

    client.post(f"/meetings/{meeting['id']}/transcribe")
    token = webhook_token(meeting["id"], "s3cret")
    assert transcriber.created[0]["webhook_auth"] == ("x-webhook-token", token)

    url = f"/webhooks/assemblyai?meeting_id={meeting['id']}"
    payload = dict(completed_result(), transcript_id="tx_1")
    r = client.post(url, json=payload)
    assert r.status_code == 401
    r = client.post(url, json=payload, headers={"x-webhook-token": webhook_token(meeting["id"], "other")})
    assert r.status_code == 401
    r = client.post(url, json=payload, headers={"x-webhook-token": token})
    assert r.status_code == 200
    assert r.get_json()["persisted"] is True

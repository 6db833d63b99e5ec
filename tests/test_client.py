import io
import threading

import pytest
import requests

from meetingai.client import ApiClientError, MeetingApiClient, UploadCancelled, _CancellableReader


class FakeResponse:
    def __init__(self, status_code=200, body=None, reason="OK"):
        self.status_code = status_code
        self._body = body
        self.reason = reason
        self.content = b"{}" if body is not None else b""

    def json(self):
        return self._body


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def test_error_envelope_becomes_exception():
    session = FakeSession(FakeResponse(409, {"error": "Transcription already in progress", "status": 409,
                                             "code": "ALREADY_TRANSCRIBING", "details": {"transcriptId": "tx_1"}},
                                       reason="Conflict"))
    client = MeetingApiClient("http://api.test/", session=session)
    with pytest.raises(ApiClientError) as exc:
        client.start_transcription("m1")
    assert exc.value.status == 409
    assert exc.value.code == "ALREADY_TRANSCRIBING"
    assert exc.value.details == {"transcriptId": "tx_1"}
    assert session.calls[0][1] == "http://api.test/meetings/m1/transcribe"


def test_non_object_error_body():
    session = FakeSession(FakeResponse(502, ["bad gateway"], reason="Bad Gateway"))
    client = MeetingApiClient("http://api.test", session=session)
    with pytest.raises(ApiClientError) as exc:
        client.start_transcription("m1")
    assert exc.value.status == 502
    assert str(exc.value) == "Bad Gateway"
    assert exc.value.code is None


def test_status_poll_retries_network_errors(monkeypatch):
    monkeypatch.setattr("meetingai.utils.retry.time.sleep", lambda s: None)
    session = FakeSession(requests.exceptions.ConnectionError("connection reset"),
                          FakeResponse(200, {"status": "processing", "hasTranscript": False}))
    client = MeetingApiClient("http://api.test", session=session)
    assert client.transcription_status("m1")["status"] == "processing"
    assert len(session.calls) == 2


def test_save_notes_payload():
    session = FakeSession(FakeResponse(200, {"version": 3}))
    client = MeetingApiClient("http://api.test", session=session)
    editor = {"name": "Ann", "color": "#fff", "sessionId": "s1"}
    assert client.save_notes("m1", "abcd1234", "hello", editor) == {"version": 3}
    assert session.calls[0][2]["json"] == {"meeting_id": "m1", "share_token": "abcd1234", "content": "hello",
                                           "last_edited_by": editor}


def test_cancellable_reader():
    cancel = threading.Event()
    reader = _CancellableReader(io.BytesIO(b"abcdef"), cancel, chunk_size=2)
    assert reader.read(2) == b"ab"
    assert reader.read() == b"cdef"

    reader = _CancellableReader(io.BytesIO(b"abcdef"), cancel, chunk_size=2)
    cancel.set()
    with pytest.raises(UploadCancelled):
        reader.read()


def test_upload_can_be_cancelled(tmp_path):
    path = tmp_path / "call.mp3"
    path.write_bytes(b"ID3" + b"\0" * 64)

    class ReadingSession(FakeSession):
        def request(self, method, url, **kwargs):
            self.calls.append((method, url, kwargs))
            kwargs["files"]["file"][1].read()
            return FakeResponse(201, {"success": True})

    cancel = threading.Event()
    cancel.set()
    client = MeetingApiClient("http://api.test", session=ReadingSession())
    with pytest.raises(UploadCancelled):
        client.upload(str(path), title="Call", cancel_event=cancel)

    ok = MeetingApiClient("http://api.test", session=ReadingSession())
    assert ok.upload(str(path), title="Call") == {"success": True}
    assert ok.session.calls[0][2]["files"]["file"][2] == "audio/mpeg"

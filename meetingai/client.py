"""HTTP client for the meetings API, used by the sync layer and scripts."""
import logging
import mimetypes
import os
import threading

import requests

from .utils.retry import with_retry

logger = logging.getLogger(__name__)


class ApiClientError(Exception):
    def __init__(self, message, status=None, code=None, details=None):
        super().__init__(message)
        self.status = status
        self.code = code
        self.details = details


class UploadCancelled(Exception):
    pass


class _CancellableReader:
    """File wrapper that aborts reading once ``cancel_event`` is set.

    requests reads the whole file while encoding the multipart body, before
    anything goes on the wire, so cancelling only helps during that read. Once
    the body is built the send runs to completion or to the request timeout.
    """

    def __init__(self, fileobj, cancel_event, chunk_size=1024 * 1024):
        self.fileobj = fileobj
        self.cancel_event = cancel_event
        self.chunk_size = chunk_size

    def read(self, size=-1):
        if size is not None and size >= 0:
            self._check()
            return self.fileobj.read(size)
        chunks = []
        while True:
            self._check()
            chunk = self.fileobj.read(self.chunk_size)
            if not chunk:
                return b"".join(chunks)
            chunks.append(chunk)

    def _check(self):
        if self.cancel_event.is_set():
            raise UploadCancelled("Upload cancelled")


class MeetingApiClient:
    def __init__(self, base_url, session=None, timeout=30):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method, path, retry=False, **kwargs):
        def call():
            r = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
            if r.status_code >= 400:
                try:
                    body = r.json()
                except ValueError:
                    body = {}
                if not isinstance(body, dict):
                    body = {}
                raise ApiClientError(body.get("error") or r.reason or "Request failed", r.status_code,
                                     body.get("code"), body.get("details"))
            return r.json() if r.content else {}

        return with_retry(call) if retry else call()

    def login(self, email, password):
        return self._request("POST", "/auth/login", json={"email": email, "password": password})

    def transcription_status(self, meeting_id):
        return self._request("GET", f"/meetings/{meeting_id}/transcription-status", retry=True)

    def start_transcription(self, meeting_id):
        return self._request("POST", f"/meetings/{meeting_id}/transcribe")

    def get_notes(self, meeting_id, share_token):
        return self._request("GET", "/public/notes", params={"meeting_id": meeting_id, "share_token": share_token},
                             retry=True)

    def save_notes(self, meeting_id, share_token, content, editor):
        return self._request("POST", "/public/notes", json={
            "meeting_id": meeting_id,
            "share_token": share_token,
            "content": content,
            "last_edited_by": editor,
        })

    def upload(self, path, title=None, cancel_event=None):
        """Upload an audio/video file.

        Setting ``cancel_event`` from another thread aborts while the file is
        still being read into the request body, not during the network send.
        """
        cancel_event = cancel_event or threading.Event()
        mimetype = mimetypes.guess_type(path)[0] or "application/octet-stream"
        data = {"title": title} if title else {}
        with open(path, "rb") as f:
            reader = _CancellableReader(f, cancel_event)
            files = {"file": (os.path.basename(path), reader, mimetype)}
            try:
                return self._request("POST", "/upload", files=files, data=data)
            except UploadCancelled:
                logger.info('Upload of %s cancelled', path)
                raise

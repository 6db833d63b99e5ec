"""AssemblyAI transcription over its REST API.

Calls go through ``requests`` with the shared retry helper; non-2xx responses
and provider-reported errors surface as ``ProviderError``.
"""
import logging

import requests

from ..errors import ProviderError
from ..utils.retry import with_retry

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.assemblyai.com/v2"


class AssemblyAIClient:
    def __init__(self, api_key, base_url=DEFAULT_BASE_URL, session=None, timeout=60, retry_options=None):
        if not api_key:
            raise ValueError("AssemblyAI API key is required")
        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.retry_options = retry_options or {}

    def _request(self, method, path, **kwargs):
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = self.api_key
        url = f"{self.base_url}{path}"

        def call():
            r = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
            if r.status_code >= 400:
                raise ProviderError(f"AssemblyAI {method} {path} failed ({r.status_code}): {r.text[:500]}")
            return r.json() if r.content else {}

        return with_retry(call, **self.retry_options)

    def upload(self, data: bytes) -> str:
        """Upload raw audio; returns a URL only the provider can read."""
        jr = self._request("POST", "/upload", data=data, headers={"Content-Type": "application/octet-stream"})
        return jr["upload_url"]

    def create_transcript(self, audio_url, webhook_url=None, webhook_auth=None, **options):
        body = {
            "audio_url": audio_url,
            "speaker_labels": True,
            "language_detection": True,
            "punctuate": True,
            "format_text": True,
        }
        if webhook_url:
            body["webhook_url"] = webhook_url
        if webhook_auth:
            body["webhook_auth_header_name"], body["webhook_auth_header_value"] = webhook_auth
        body.update(options)

        data = self._request("POST", "/transcript", json=body)
        if data.get("status") == "error" and data.get("error"):
            raise ProviderError(f"AssemblyAI error: {data['error']}")
        return data

    def get_transcript(self, transcript_id):
        return self._request("GET", f"/transcript/{transcript_id}")

    def delete_transcript(self, transcript_id):
        self._request("DELETE", f"/transcript/{transcript_id}")


def extract_speakers(result):
    """Distinct speaker labels in first-seen order, e.g. ``["Speaker A", "Speaker B"]``."""
    seen = []
    for u in result.get("utterances") or []:
        spk = u.get("speaker")
        if spk is not None and spk not in seen:
            seen.append(spk)
    return [f"Speaker {s}" for s in seen]


def format_transcript(result):
    utterances = result.get("utterances") or []
    if not utterances:
        return result.get("text") or ""
    return "\n\n".join(f"Speaker {u.get('speaker')}: {u.get('text', '')}" for u in utterances)

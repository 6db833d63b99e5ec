"""Chat-completion calls for summaries, action items and translation.

Like the rest of the provider layer this talks to the HTTP API with
``requests`` rather than the SDK, and asks the model for JSON.
"""
import json
import logging
import re
import time

import requests

from ..errors import ProviderError
from ..utils.retry import with_retry

logger = logging.getLogger(__name__)

MAX_ITEMS = 10

SUMMARY_SYSTEM_PROMPT = """You are an expert meeting analyst extracting actionable insights from transcripts.

The overview captures the meeting's purpose and main outcome in 2-5 sentences. Key points are specific topics
discussed, decisions are concrete agreements reached, next steps are actionable follow-ups.

Respond with a valid JSON object in exactly this format:
{
  "overview": "string",
  "key_points": ["string", ...],
  "decisions": ["string", ...],
  "next_steps": ["string", ...]
}
Each array holds at most 10 items; keep the most important ones."""

ACTION_ITEMS_SYSTEM_PROMPT = """You extract actionable tasks from meeting transcripts.

Respond with JSON in this format:
{
  "action_items": [
    {"task": "string", "assignee": "string or null", "due_date": "ISO date or null",
     "priority": "high" | "medium" | "low"}
  ]
}
At most 10 action items."""


def _parse_json(content):
    try:
        return json.loads(content)
    except (TypeError, ValueError):
        m = re.search(r"\{[\s\S]*\}", content or "")
        if m:
            return json.loads(m.group(0))
        raise ProviderError("Failed to parse model response as JSON")


def count_speakers(transcript):
    return len(set(re.findall(r"^(Speaker \w+):", transcript or "", flags=re.M)))


class OpenAIClient:
    def __init__(self, api_key, model="gpt-4o-mini", base_url="https://api.openai.com/v1", session=None,
                 timeout=60, retry_options=None):
        if not api_key:
            raise ValueError("OpenAI API key is required")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.retry_options = retry_options or {}

    def _chat(self, messages, temperature=0.3, max_tokens=1000, json_mode=True):
        payload = {"model": self.model, "messages": messages, "temperature": temperature, "max_tokens": max_tokens}
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        def call():
            r = self.session.post(f"{self.base_url}/chat/completions", headers=headers, json=payload,
                                  timeout=self.timeout)
            if r.status_code >= 400:
                raise ProviderError(f"OpenAI API error ({r.status_code}): {r.text[:500]}")
            choices = r.json().get("choices") or []
            if not choices:
                raise ProviderError("No response from OpenAI")
            return choices[0]["message"]["content"]

        return with_retry(call, **self.retry_options)

    def generate_summary(self, transcript, participants=None):
        participants = participants or []
        user_prompt = (
            "Analyze this meeting transcript and provide a structured summary.\n\n"
            f"Participants: {', '.join(participants) if participants else 'Not specified'}\n"
            f"Total speakers: {count_speakers(transcript)}\n\n"
            f"Transcript:\n{transcript}"
        )
        data = _parse_json(self._chat([
            {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ]))
        if not isinstance(data.get("overview"), str):
            raise ProviderError("Summary response is missing an overview")
        return {
            "overview": data["overview"],
            "key_points": list(data.get("key_points") or [])[:MAX_ITEMS],
            "decisions": list(data.get("decisions") or [])[:MAX_ITEMS],
            "next_steps": list(data.get("next_steps") or [])[:MAX_ITEMS],
        }

    def extract_action_items(self, transcript, summary, participants=None):
        """Best effort: an extraction failure yields no items rather than an error."""
        user_prompt = (
            "Extract action items from this meeting.\n\n"
            f"Meeting summary:\n{json.dumps(summary, indent=2)}\n\n"
            f"Transcript:\n{transcript}\n\n"
            f"Participants: {', '.join(participants or []) or 'Unknown'}"
        )
        try:
            data = _parse_json(self._chat([
                {"role": "system", "content": ACTION_ITEMS_SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ], temperature=0.2))
        except Exception:
            logger.exception('Action item extraction failed')
            return []

        stamp = int(time.time() * 1000)
        items = []
        for i, item in enumerate((data.get("action_items") or [])[:MAX_ITEMS]):
            if not isinstance(item, dict) or not item.get("task"):
                continue
            priority = item.get("priority")
            items.append({
                "id": f"action-{stamp}-{i}",
                "task": item["task"],
                "assignee": item.get("assignee"),
                "due_date": item.get("due_date"),
                "priority": priority if priority in ("high", "medium", "low") else "medium",
                "completed": False,
            })
        return items

    def translate(self, content, target_language_name):
        """Translate a ``{field: text | [text]}`` mapping, keeping its shape."""
        system = (
            f"You are a professional translator. Translate every string value of the JSON object the user sends "
            f"into {target_language_name}. Keep the keys and the structure unchanged, keep speaker labels such as "
            f"'Speaker A:' untranslated, and respond with the JSON object only."
        )
        data = _parse_json(self._chat([
            {"role": "system", "content": system},
            {"role": "user", "content": json.dumps(content, ensure_ascii=False)},
        ], temperature=0.2, max_tokens=4000))
        return {k: data.get(k, v) for k, v in content.items()}


def fallback_summary(transcript):
    """Summary built without a model: first sentences of the transcript."""
    text = re.sub(r"^Speaker \w+:\s*", "", transcript or "", flags=re.M)
    sentences = [s.strip() for s in re.split(r"(?<=[.!?])\s+", text) if len(s.strip()) > 20]
    overview = " ".join(sentences[:3]) or "Meeting transcript available. Unable to generate AI summary."
    return {
        "overview": overview,
        "key_points": sentences[:3],
        "decisions": [],
        "next_steps": [],
    }

"""Shared scratch notes for a share link, last writer wins.

There is no merge and no conflict detection: a write replaces the document
even when it was based on stale content. The database row is the source of
truth on load; ``LocalBroadcast`` only mirrors writes to other sessions in
the same process.
"""
import json
import logging
import threading
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def _now_iso():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def storage_key(share_token):
    return f"notes-sync-{share_token}"


class NotesSync:
    def __init__(self, now=None):
        self.now = now or _now_iso
        self._states = {}
        self._lock = threading.Lock()

    def state(self, share_token):
        with self._lock:
            current = self._states.get(share_token)
        if current is None:
            return {"content": "", "editedBy": None, "version": 0, "updatedAt": self.now()}
        return dict(current)

    def update(self, share_token, content, editor):
        with self._lock:
            version = self._states.get(share_token, {}).get("version", 0)
            new = {"content": content, "editedBy": editor, "version": version + 1, "updatedAt": self.now()}
            self._states[share_token] = new
        return dict(new)

    def replace(self, share_token, state):
        """Adopt an authoritative state (e.g. the stored row) as is."""
        with self._lock:
            self._states[share_token] = dict(state)


class LocalBroadcast:
    """Key/value mirror with change listeners, standing in for shared browser storage."""

    def __init__(self):
        self._values = {}
        self._listeners = {}
        self._lock = threading.Lock()

    def get(self, key):
        raw = self._values.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key, value):
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.warning('Notes mirror write failed: %s', e)
            return
        with self._lock:
            self._values[key] = raw
            listeners = list(self._listeners.get(key, ()))
        for listener in listeners:
            try:
                listener(json.loads(raw))
            except Exception as e:
                logger.warning('Notes mirror listener failed: %s', e)

    def subscribe(self, key, listener):
        with self._lock:
            self._listeners.setdefault(key, []).append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners.get(key, []):
                    self._listeners[key].remove(listener)
        return unsubscribe


default_broadcast = LocalBroadcast()


class CollaborativeNotesSession:
    """One participant's view of the shared notes for a share link."""

    def __init__(self, api, meeting_id, share_token, editor, notes=None, broadcast=None, on_remote_change=None):
        self.api = api
        self.meeting_id = meeting_id
        self.share_token = share_token
        self.editor = editor
        self.notes = notes or NotesSync()
        self.broadcast = broadcast or default_broadcast
        self.on_remote_change = on_remote_change
        self._unsubscribe = self.broadcast.subscribe(storage_key(share_token), self._mirrored)

    @property
    def content(self):
        return self.notes.state(self.share_token)["content"]

    def load(self):
        row = self.api.get_notes(self.meeting_id, self.share_token)
        state = {
            "content": row.get("content") or "",
            "editedBy": row.get("last_edited_by"),
            "version": row.get("version") or 0,
            "updatedAt": row.get("updated_at") or _now_iso(),
        }
        self.notes.replace(self.share_token, state)
        return state

    def edit(self, content):
        state = self.notes.update(self.share_token, content, self.editor)
        self.broadcast.set(storage_key(self.share_token), {
            "shareToken": self.share_token, "content": content, "userInfo": self.editor,
            "version": state["version"], "timestamp": state["updatedAt"],
        })
        try:
            row = self.api.save_notes(self.meeting_id, self.share_token, content, self.editor)
        except Exception as e:
            logger.warning('Saving notes for %s failed: %s', self.share_token, e)
            return state
        if row.get("version") is not None:
            state = dict(state, version=row["version"], updatedAt=row.get("updated_at") or state["updatedAt"])
            self.notes.replace(self.share_token, state)
        return state

    def _mirrored(self, data):
        user = data.get("userInfo") or {}
        if user.get("sessionId") == self.editor.get("sessionId"):
            return
        state = self.notes.update(self.share_token, data.get("content", ""), user)
        if self.on_remote_change:
            self.on_remote_change(state)

    def close(self):
        self._unsubscribe()

"""Apply row-change events to a client-side meeting cache.

Events look like ``{"table", "type": INSERT|UPDATE|DELETE, "new", "old"}``.
"""
import logging

logger = logging.getLogger(__name__)

TRANSCRIPT_READY = "transcript_ready"
SUMMARY_READY = "summary_ready"
ACTION_ITEMS_READY = "action_items_ready"
MEETING_ADDED = "meeting_added"
INSIGHTS_READY = "insights_ready"
INSIGHTS_UPDATED = "insights_updated"

# notification kind -> meeting field whose absent->present transition raises it
TRANSITIONS = (
    (TRANSCRIPT_READY, "transcript"),
    (SUMMARY_READY, "summary"),
    (ACTION_ITEMS_READY, "action_items"),
)


def _present(value):
    return bool(value)


class MeetingCache:
    def __init__(self):
        self.collection = []
        self.details = {}
        self.insights = {}
        self.collection_stale = False
        self.stale_details = set()

    def find(self, meeting_id):
        for m in self.collection:
            if m.get("id") == meeting_id:
                return m
        return self.details.get(meeting_id)


class _TransitionNotifier:
    """Raises each transition notification once until the field goes absent again."""

    def __init__(self, notify):
        self.notify = notify
        self._fired = set()

    def __call__(self, new, old):
        meeting_id = new.get("id")
        for kind, field in TRANSITIONS:
            key = (meeting_id, kind)
            if not _present(new.get(field)):
                self._fired.discard(key)
                continue
            if _present(old.get(field)) or key in self._fired:
                continue
            self._fired.add(key)
            if self.notify:
                self.notify(kind, new)


class _Sync:
    def __init__(self, transport, cache=None, notify=None, on_stale=None):
        self.transport = transport
        self.cache = cache or MeetingCache()
        self.on_stale = on_stale
        self.notify = notify
        self._notifier = _TransitionNotifier(notify)
        self._unsubscribers = []

    def _subscribe(self, filter):
        self._unsubscribers.append(self.transport.subscribe(filter, self.handle))

    def _old_values(self, event, meeting_id):
        # partial old rows carry only the key; fall back to what we cached
        old = dict(self.cache.find(meeting_id) or {})
        old.update(event.get("old") or {})
        return old

    def _replace(self, new):
        meeting_id = new.get("id")
        self.cache.collection = [dict(m, **new) if m.get("id") == meeting_id else m for m in self.cache.collection]
        if meeting_id in self.cache.details:
            self.cache.details[meeting_id] = dict(self.cache.details[meeting_id], **new)

    def _remove(self, meeting_id):
        self.cache.collection = [m for m in self.cache.collection if m.get("id") != meeting_id]
        self.cache.details.pop(meeting_id, None)
        self.cache.insights.pop(meeting_id, None)

    def _emit(self, kind, payload):
        if self.notify:
            self.notify(kind, payload)

    def _mark_stale(self, scope):
        if self.on_stale:
            self.on_stale(scope)

    def handle(self, event):
        raise NotImplementedError

    def close(self):
        while self._unsubscribers:
            self._unsubscribers.pop()()


class MeetingsRealtimeSync(_Sync):
    """Collection scope: every meeting owned by one user."""

    def __init__(self, transport, user_id, **kwargs):
        super().__init__(transport, **kwargs)
        self.user_id = user_id
        self._subscribe({"user_id": user_id})

    def handle(self, event):
        if event.get("table") != "meetings":
            return
        kind = event.get("type")
        new = event.get("new") or {}
        if kind == "INSERT":
            self.cache.collection.insert(0, new)
            self.cache.collection_stale = True
            self._mark_stale("collection")
            self._emit(MEETING_ADDED, new)
        elif kind == "UPDATE":
            old = self._old_values(event, new.get("id"))
            self._replace(new)
            self._notifier(new, old)
        elif kind == "DELETE":
            self._remove((event.get("old") or {}).get("id"))
        else:
            logger.debug('Ignoring event type %s', kind)


class MeetingRealtimeSync(_Sync):
    """Single meeting scope: the meeting row and its insights."""

    def __init__(self, transport, meeting_id, **kwargs):
        super().__init__(transport, **kwargs)
        self.meeting_id = meeting_id
        self._subscribe({"meeting_id": meeting_id})

    def handle(self, event):
        table, kind = event.get("table"), event.get("type")
        new = event.get("new") or {}
        if table == "meeting_insights":
            if kind == "DELETE":
                self.cache.insights.pop(self.meeting_id, None)
            else:
                self.cache.insights[self.meeting_id] = new
                self._emit(INSIGHTS_READY if kind == "INSERT" else INSIGHTS_UPDATED, new)
            return
        if table != "meetings":
            return

        if kind == "UPDATE":
            old = self._old_values(event, self.meeting_id)
            self.cache.details[self.meeting_id] = dict(self.cache.details.get(self.meeting_id) or {}, **new)
            self._replace(new)
            self._notifier(new, old)
        elif kind == "DELETE":
            self._remove(self.meeting_id)
        elif kind == "INSERT":
            self.cache.details[self.meeting_id] = new
            self.cache.stale_details.add(self.meeting_id)
            self._mark_stale("detail")

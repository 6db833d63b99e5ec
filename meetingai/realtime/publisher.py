"""Publish committed row changes of meetings and insights to Redis.

Changes are gathered after each flush and sent only once the transaction
commits; a rollback drops them.
"""
import json
import logging
from datetime import datetime

from flask import current_app, has_app_context
from sqlalchemy import event, inspect

logger = logging.getLogger(__name__)

PENDING_KEY = "meetingai_pending_changes"


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat() + "Z"
    return value


def _snapshot(obj):
    return obj.to_dict() if hasattr(obj, "to_dict") else {}


def _old_snapshot(obj):
    old = _snapshot(obj)
    for attr in inspect(obj).mapper.column_attrs:
        hist = inspect(obj).attrs[attr.key].history
        if hist.deleted:
            old[attr.key] = _jsonable(hist.deleted[0])
    return old


def channels_for(table, row):
    if table == "meetings":
        chans = [f"meetings:{row.get('id')}"]
        if row.get("user_id") is not None:
            chans.append(f"meetings:user:{row['user_id']}")
        return chans
    return [f"meetings:{row.get('meeting_id')}"]


class ChangePublisher:
    tables = ("meetings", "meeting_insights")

    def __init__(self, redis=None):
        self.redis = redis

    def publish_now(self, table, kind, new, old):
        if self.redis is None:
            return
        row = new or old or {}
        payload = json.dumps({"table": table, "type": kind, "new": new, "old": old}, default=str)
        for chan in channels_for(table, row):
            try:
                self.redis.publish(chan, payload)
            except Exception as e:
                logger.warning('Failed to publish %s change on %s: %s', table, chan, e)

    def collect(self, session):
        pending = session.info.setdefault(PENDING_KEY, [])
        for obj in session.new:
            if getattr(obj, "__tablename__", None) in self.tables:
                pending.append((obj.__tablename__, "INSERT", _snapshot(obj), None))
        for obj in session.dirty:
            if getattr(obj, "__tablename__", None) in self.tables and session.is_modified(obj):
                pending.append((obj.__tablename__, "UPDATE", _snapshot(obj), _old_snapshot(obj)))
        for obj in session.deleted:
            if getattr(obj, "__tablename__", None) in self.tables:
                pending.append((obj.__tablename__, "DELETE", None, _snapshot(obj)))

    def flush_pending(self, session):
        for table, kind, new, old in session.info.pop(PENDING_KEY, []):
            self.publish_now(table, kind, new, old)


def _current_publisher():
    if not has_app_context():
        return None
    return current_app.extensions.get("change_publisher")


def _after_flush(session, flush_context):
    publisher = _current_publisher()
    if publisher is not None and publisher.redis is not None:
        publisher.collect(session)


def _after_commit(session):
    publisher = _current_publisher()
    if publisher is not None:
        publisher.flush_pending(session)
    else:
        session.info.pop(PENDING_KEY, None)


def _after_rollback(session):
    session.info.pop(PENDING_KEY, None)


def install_session_hooks(scoped_session):
    for name, fn in (("after_flush", _after_flush), ("after_commit", _after_commit),
                     ("after_rollback", _after_rollback)):
        if not event.contains(scoped_session, name, fn):
            event.listen(scoped_session, name, fn)

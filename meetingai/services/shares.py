import secrets
from datetime import timedelta

from flask import current_app
from werkzeug.security import check_password_hash, generate_password_hash

from ..extensions import db
from ..models import SharedMeeting
from ..utils.time import utcnow

EXPIRY_HOURS = {"1h": 1, "24h": 24, "7d": 24 * 7, "30d": 24 * 30, "never": None}


def generate_token():
    # 8 hex chars
    return secrets.token_hex(4)


def hash_password(password):
    return generate_password_hash(password)


def check_password(share, password):
    return bool(password and share.password) and check_password_hash(share.password, password)


def expiry_for(expires_in, now=None):
    hours = EXPIRY_HOURS[expires_in]
    return None if hours is None else (now or utcnow()) + timedelta(hours=hours)


def share_url(token):
    base = (current_app.config.get("APP_URL") or "").rstrip("/")
    return f"{base}/share/{token}"


def create_share(meeting, user_id, expires_in="7d", password=None):
    token = generate_token()
    while SharedMeeting.query.filter_by(share_token=token).first() is not None:
        token = generate_token()
    share = SharedMeeting(
        meeting_id=meeting.id,
        share_token=token,
        password=hash_password(password) if password else None,
        expires_at=expiry_for(expires_in),
        created_by=user_id,
    )
    db.session.add(share)
    db.session.commit()
    return share


def record_access(share):
    share.access_count = (share.access_count or 0) + 1
    share.last_accessed_at = utcnow()
    db.session.commit()


def cleanup_expired_shares(now=None):
    """Delete share links past their expiry; returns how many went."""
    now = now or utcnow()
    deleted = (SharedMeeting.query
               .filter(SharedMeeting.expires_at.isnot(None), SharedMeeting.expires_at < now)
               .delete(synchronize_session=False))
    db.session.commit()
    current_app.logger.info('Cleaned up %s expired share links', deleted)
    return deleted

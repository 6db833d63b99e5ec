from ..extensions import db
from ..utils.time import utcnow
from .base import TimestampMixin, SerializerMixin, new_uuid


class SharedMeeting(db.Model, TimestampMixin, SerializerMixin):
    __tablename__ = "shared_meetings"
    __serialize_exclude__ = ("password",)

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    meeting_id = db.Column(db.String(36), db.ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, index=True)
    share_token = db.Column(db.String(16), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255))  # werkzeug password hash
    expires_at = db.Column(db.DateTime, nullable=True)
    access_count = db.Column(db.Integer, nullable=False, default=0)
    last_accessed_at = db.Column(db.DateTime)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    def is_expired(self, now=None):
        if self.expires_at is None:
            return False
        return self.expires_at < (now or utcnow())

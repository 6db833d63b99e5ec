from ..extensions import db
from .base import TimestampMixin, SerializerMixin, new_uuid

ANNOTATION_TYPES = ("highlight", "comment", "note")


class MeetingAnnotation(db.Model, TimestampMixin, SerializerMixin):
    __tablename__ = "meeting_annotations"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    meeting_id = db.Column(db.String(36), db.ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, index=True)
    share_token = db.Column(db.String(16), nullable=False, index=True)
    parent_id = db.Column(db.String(36), db.ForeignKey("meeting_annotations.id", ondelete="CASCADE"))
    user_info = db.Column(db.JSON, nullable=False)  # {name, color, sessionId, email?, avatar_url?}
    session_id = db.Column(db.String(128), nullable=False, index=True)
    type = db.Column(db.String(20), nullable=False)
    content = db.Column(db.Text, nullable=False, default="")
    position = db.Column(db.JSON)

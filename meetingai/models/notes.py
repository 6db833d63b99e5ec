from ..extensions import db
from .base import TimestampMixin, SerializerMixin, new_uuid


class MeetingNotes(db.Model, TimestampMixin, SerializerMixin):
    """One shared free-text document per (meeting, share token); last writer wins."""
    __tablename__ = "meeting_notes"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    meeting_id = db.Column(db.String(36), db.ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False)
    share_token = db.Column(db.String(16), nullable=False)
    content = db.Column(db.Text, nullable=False, default="")
    last_edited_by = db.Column(db.JSON)  # {name, color, sessionId}
    version = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.UniqueConstraint('meeting_id', 'share_token', name='uq_meeting_notes_meeting_token'),
    )

from ..extensions import db
from .base import UserScopedMixin, TimestampMixin, SerializerMixin, new_uuid


class MeetingComment(db.Model, UserScopedMixin, TimestampMixin, SerializerMixin):
    __tablename__ = "meeting_comments"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    meeting_id = db.Column(db.String(36), db.ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = db.Column(db.String(36), db.ForeignKey("meeting_comments.id", ondelete="CASCADE"), nullable=True)
    text = db.Column(db.Text, nullable=False)
    # character offsets within a transcript paragraph
    selection_start = db.Column(db.Integer, nullable=False)
    selection_end = db.Column(db.Integer, nullable=False)
    selection_text = db.Column(db.Text, nullable=False)
    # snippets around the selection, used to re-anchor after re-indexing
    context_before = db.Column(db.Text)
    context_after = db.Column(db.Text)
    paragraph_id = db.Column(db.String(64))
    speaker_name = db.Column(db.String(255))
    user_name = db.Column(db.String(255))
    user_color = db.Column(db.String(16), default="#a855f7")

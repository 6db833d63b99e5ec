from ..extensions import db
from .base import TimestampMixin, SerializerMixin, new_uuid


class MeetingInsights(db.Model, TimestampMixin, SerializerMixin):
    __tablename__ = "meeting_insights"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    meeting_id = db.Column(db.String(36), db.ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, unique=True)
    speaker_metrics = db.Column(db.JSON)
    sentiment = db.Column(db.JSON)
    dynamics = db.Column(db.JSON)
    key_moments = db.Column(db.JSON)
    engagement_score = db.Column(db.Integer)
    generated_at = db.Column(db.DateTime)

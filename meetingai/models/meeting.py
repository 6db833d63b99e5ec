from ..extensions import db
from .base import UserScopedMixin, TimestampMixin, SerializerMixin, new_uuid

PRIORITIES = ("high", "medium", "low")


class Meeting(db.Model, UserScopedMixin, TimestampMixin, SerializerMixin):
    __tablename__ = "meetings"
    __serialize_exclude__ = ("utterances", "audio_path")

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    # UserScopedMixin: user_id
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    # audio_url: provider-readable (signed) URL; audio_path: storage reference for download/delete
    audio_url = db.Column(db.Text)
    audio_path = db.Column(db.String(512))
    transcript = db.Column(db.Text, nullable=True)
    # set while a provider job is outstanding, cleared once the transcript lands
    transcript_id = db.Column(db.String(128), nullable=True, index=True)
    utterances = db.Column(db.JSON, nullable=True)
    summary = db.Column(db.JSON, nullable=True)  # {overview, key_points, decisions, next_steps}
    action_items = db.Column(db.JSON, nullable=True)  # [{id, task, assignee, due_date, priority, completed}]
    participants = db.Column(db.JSON, nullable=False, default=list)
    duration = db.Column(db.Integer)  # seconds
    language = db.Column(db.String(10))
    translations = db.Column(db.JSON, nullable=True)  # {lang: translated content}
    recorded_at = db.Column(db.DateTime)

    comments = db.relationship("MeetingComment", backref="meeting", cascade="all, delete-orphan", passive_deletes=True)
    shares = db.relationship("SharedMeeting", backref="meeting", cascade="all, delete-orphan", passive_deletes=True)
    notes = db.relationship("MeetingNotes", backref="meeting", cascade="all, delete-orphan", passive_deletes=True)
    annotations = db.relationship("MeetingAnnotation", backref="meeting", cascade="all, delete-orphan", passive_deletes=True)
    insights = db.relationship("MeetingInsights", backref="meeting", uselist=False, cascade="all, delete-orphan", passive_deletes=True)

    @property
    def transcription_state(self):
        if self.transcript is not None:
            return "completed"
        if self.transcript_id:
            return "queued"
        return "idle"

    def can_start_transcription(self):
        return bool(self.audio_url or self.audio_path) and self.transcript is None and not self.transcript_id

    def __repr__(self) -> str:
        return f"<Meeting id={self.id} user_id={self.user_id} state={self.transcription_state}>"

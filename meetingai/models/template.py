from ..extensions import db
from .base import UserScopedMixin, TimestampMixin, SerializerMixin, new_uuid


class MeetingTemplate(db.Model, UserScopedMixin, TimestampMixin, SerializerMixin):
    __tablename__ = "meeting_templates"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.String(100), nullable=False)
    title_template = db.Column(db.String(255), nullable=False)
    description_template = db.Column(db.String(500))
    participants = db.Column(db.JSON, nullable=False, default=list)
    # at most one default per user, enforced when writing
    is_default = db.Column(db.Boolean, nullable=False, default=False)

import uuid

from sqlalchemy.orm import declared_attr

from ..extensions import db
from ..utils.time import utcnow, isoformat


def new_uuid():
    return str(uuid.uuid4())


class UserScopedMixin:
    @declared_attr
    def user_id(cls):
        return db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class SerializerMixin:
    """Columns as a JSON-ready dict; datetimes become ISO strings."""

    __serialize_exclude__ = ()

    def to_dict(self):
        out = {}
        for col in self.__table__.columns:
            if col.name in self.__serialize_exclude__:
                continue
            value = getattr(self, col.name)
            if hasattr(value, "isoformat"):
                value = isoformat(value)
            out[col.name] = value
        return out

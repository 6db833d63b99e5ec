from ..extensions import db
from flask_login import UserMixin
from .base import TimestampMixin, SerializerMixin
from werkzeug.security import generate_password_hash, check_password_hash


class User(db.Model, UserMixin, TimestampMixin, SerializerMixin):
    __tablename__ = "users"
    __serialize_exclude__ = ("password_hash",)

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(255))
    password_hash = db.Column(db.String(255), nullable=False)

    def set_password(self, raw):
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw):
        return check_password_hash(self.password_hash, raw)

    @property
    def display_name(self):
        return self.name or (self.email or "").split("@")[0] or "Anonymous"

from flask import Blueprint, jsonify
from flask_login import login_user, logout_user, current_user

from ..errors import ApiError
from ..extensions import db
from ..models import User
from ..schemas import SignupRequest, LoginRequest
from ..utils.decorators import api_login_required
from .helpers import parse_body

bp = Blueprint("auth", __name__, url_prefix="/auth")


@bp.post("/signup")
def signup():
    data = parse_body(SignupRequest)
    email = data.email.strip().lower()
    if User.query.filter_by(email=email).first():
        raise ApiError("A user with this email already exists", 409, "EMAIL_TAKEN")
    user = User(email=email, name=data.name)
    user.set_password(data.password)
    db.session.add(user)
    db.session.commit()
    login_user(user)
    return jsonify(user.to_dict()), 201


@bp.post("/login")
def login():
    data = parse_body(LoginRequest)
    user = User.query.filter_by(email=data.email.strip().lower()).first()
    if not user or not user.check_password(data.password):
        raise ApiError("Invalid credentials", 401, "INVALID_CREDENTIALS")
    login_user(user)
    return jsonify(user.to_dict())


@bp.post("/logout")
@api_login_required
def logout():
    logout_user()
    return jsonify({"success": True})


@bp.get("/me")
@api_login_required
def me():
    return jsonify(current_user.to_dict())

from flask import request
from flask_login import current_user

from ..errors import ApiError
from ..extensions import db
from ..models import Meeting, SharedMeeting
from ..utils.time import utcnow


def parse_body(model):
    """Validate the JSON body; a ``ValidationError`` renders as 400 VALIDATION_ERROR."""
    return model.model_validate(request.get_json(silent=True) or {})


def owned_meeting(meeting_id):
    meeting = Meeting.query.filter_by(id=meeting_id, user_id=current_user.id).first()
    if meeting is None:
        raise ApiError("Meeting not found", 404, "NOT_FOUND")
    return meeting


def active_share(token, meeting_id=None, expired_code="EXPIRED_SHARE"):
    share = SharedMeeting.query.filter_by(share_token=token).first()
    if share is None:
        raise ApiError("Invalid share token", 404, "INVALID_SHARE")
    if share.is_expired(utcnow()):
        raise ApiError("Share link has expired", 410, expired_code)
    if meeting_id is not None and share.meeting_id != meeting_id:
        raise ApiError("Meeting ID mismatch", 400, "INVALID_MEETING")
    return share


def commit_or_500(message, code):
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        raise ApiError(message, 500, code, str(e)) from e

from flask import Blueprint, jsonify
from flask_login import current_user

from ..errors import ApiError
from ..extensions import db
from ..models import SharedMeeting
from ..schemas import ShareCreate
from ..services.shares import create_share, share_url
from ..utils.decorators import api_login_required, rate_limited, user_key
from ..utils.time import isoformat, utcnow
from .helpers import owned_meeting, parse_body

bp = Blueprint("shares", __name__)


def _share_view(share, now=None):
    data = share.to_dict()
    data.update({
        "shareUrl": share_url(share.share_token),
        "hasPassword": bool(share.password),
        "isExpired": share.is_expired(now),
    })
    return data


@bp.post("/meetings/<meeting_id>/share")
@api_login_required
@rate_limited("sharing", user_key)
def create(meeting_id):
    data = parse_body(ShareCreate)
    meeting = owned_meeting(meeting_id)
    share = create_share(meeting, current_user.id, data.expires_in, data.password)
    return jsonify({
        "shareUrl": share_url(share.share_token),
        "shareToken": share.share_token,
        "expiresAt": isoformat(share.expires_at),
        "hasPassword": bool(share.password),
    }), 201


@bp.get("/meetings/<meeting_id>/share")
@api_login_required
def list_shares(meeting_id):
    meeting = owned_meeting(meeting_id)
    now = utcnow()
    shares = (SharedMeeting.query.filter_by(meeting_id=meeting.id)
              .order_by(SharedMeeting.created_at.desc()).all())
    return jsonify([_share_view(s, now) for s in shares])


@bp.delete("/shares/<token>")
@api_login_required
@rate_limited("sharing", user_key)
def revoke(token):
    share = SharedMeeting.query.filter_by(share_token=token).first()
    if share is None:
        raise ApiError("Share link not found", 404, "NOT_FOUND")
    if share.meeting.user_id != current_user.id:
        raise ApiError("Unauthorized", 403, "FORBIDDEN")
    db.session.delete(share)
    db.session.commit()
    return jsonify({"success": True})

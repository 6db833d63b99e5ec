from flask import Blueprint, jsonify
from flask_login import current_user

from ..errors import ApiError
from ..extensions import db
from ..models import MeetingComment
from ..schemas import CommentCreate, CommentUpdate
from ..utils.decorators import api_login_required
from .helpers import owned_meeting, parse_body

bp = Blueprint("comments", __name__, url_prefix="/meetings")

USER_COLORS = ("#a855f7", "#3b82f6", "#10b981", "#f59e0b", "#ef4444", "#ec4899", "#14b8a6", "#6366f1")


def _color_for(user_id):
    return USER_COLORS[int(user_id) % len(USER_COLORS)]


def _authored_comment(meeting_id, comment_id):
    comment = MeetingComment.query.filter_by(id=comment_id, meeting_id=meeting_id).first()
    if comment is None:
        raise ApiError("Comment not found", 404, "NOT_FOUND")
    if comment.user_id != current_user.id:
        raise ApiError("Only the author can change this comment", 403, "FORBIDDEN")
    return comment


@bp.get("/<meeting_id>/comments")
@api_login_required
def list_comments(meeting_id):
    meeting = owned_meeting(meeting_id)
    comments = (MeetingComment.query.filter_by(meeting_id=meeting.id)
                .order_by(MeetingComment.created_at.asc()).all())
    return jsonify({"comments": [c.to_dict() for c in comments]})


@bp.post("/<meeting_id>/comments")
@api_login_required
def create_comment(meeting_id):
    data = parse_body(CommentCreate)
    meeting = owned_meeting(meeting_id)
    if data.parent_id and not MeetingComment.query.filter_by(id=data.parent_id, meeting_id=meeting.id).first():
        raise ApiError("Parent comment not found", 404, "NOT_FOUND")

    sel = data.selection
    comment = MeetingComment(
        meeting_id=meeting.id,
        user_id=current_user.id,
        parent_id=data.parent_id,
        text=data.text,
        selection_start=sel.start,
        selection_end=sel.end,
        selection_text=sel.text,
        context_before=sel.context_before,
        context_after=sel.context_after,
        paragraph_id=sel.paragraph_id,
        speaker_name=sel.speaker_name,
        user_name=current_user.display_name,
        user_color=_color_for(current_user.id),
    )
    db.session.add(comment)
    db.session.commit()
    return jsonify(comment.to_dict()), 201


@bp.patch("/<meeting_id>/comments/<comment_id>")
@api_login_required
def update_comment(meeting_id, comment_id):
    data = parse_body(CommentUpdate)
    comment = _authored_comment(meeting_id, comment_id)
    comment.text = data.text
    db.session.commit()
    return jsonify(comment.to_dict())


@bp.delete("/<meeting_id>/comments/<comment_id>")
@api_login_required
def delete_comment(meeting_id, comment_id):
    comment = _authored_comment(meeting_id, comment_id)
    db.session.delete(comment)
    db.session.commit()
    return jsonify({"success": True})

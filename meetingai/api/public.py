"""Share-token authenticated endpoints; no user session involved."""
from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import IntegrityError

from ..errors import ApiError
from ..extensions import db
from ..models import MeetingAnnotation, MeetingNotes, SharedMeeting
from ..schemas import (AnnotationCreate, AnnotationDelete, AnnotationUpdate, NotesWrite, ShareAccess)
from ..services.shares import check_password, record_access
from ..utils.decorators import rate_limited, share_token_key
from ..utils.time import isoformat, utcnow
from .helpers import active_share, parse_body

bp = Blueprint("public", __name__, url_prefix="/public")

SHARED_FIELDS = ("id", "title", "description", "recorded_at", "duration", "participants", "transcript",
                 "summary", "action_items", "audio_url")


def _shared_view(share):
    record_access(share)
    meeting = share.meeting.to_dict()
    return {
        "requiresPassword": False,
        "meeting": {k: meeting.get(k) for k in SHARED_FIELDS},
        "share": {
            "created_at": isoformat(share.created_at),
            "expires_at": isoformat(share.expires_at),
            "access_count": share.access_count,
        },
    }


def _share_or_404(token):
    share = SharedMeeting.query.filter_by(share_token=token).first()
    if share is None:
        raise ApiError("Share link not found", 404, "NOT_FOUND")
    if share.is_expired(utcnow()):
        raise ApiError("Share link has expired", 410, "EXPIRED")
    return share


@bp.get("/shares/<token>")
@rate_limited("public_shares", share_token_key)
def view_share(token):
    share = _share_or_404(token)
    if share.password:
        return jsonify({"requiresPassword": True, "meeting": None})
    return jsonify(_shared_view(share))


@bp.post("/shares/<token>")
@rate_limited("public_shares", share_token_key)
def unlock_share(token):
    data = parse_body(ShareAccess)
    share = _share_or_404(token)
    if not share.password:
        raise ApiError("This share link does not require a password", 400, "NO_PASSWORD")
    if not check_password(share, data.password):
        raise ApiError("Incorrect password", 401, "INVALID_PASSWORD")
    return jsonify(_shared_view(share))


@bp.get("/annotations")
@rate_limited("public_annotations", share_token_key)
def list_annotations():
    meeting_id = request.args.get("meeting_id")
    token = request.args.get("share_token")
    if not meeting_id or not token:
        raise ApiError("Missing required parameters", 400, "MISSING_PARAMS")
    active_share(token, meeting_id)
    rows = (MeetingAnnotation.query.filter_by(meeting_id=meeting_id, share_token=token)
            .order_by(MeetingAnnotation.created_at.asc()).all())
    return jsonify([r.to_dict() for r in rows])


@bp.post("/annotations")
@rate_limited("public_annotations", share_token_key)
def create_annotation():
    data = parse_body(AnnotationCreate)
    active_share(data.share_token, data.meeting_id)
    annotation = MeetingAnnotation(
        meeting_id=data.meeting_id,
        share_token=data.share_token,
        user_info=data.user_info.model_dump(by_alias=True, exclude_none=True),
        session_id=data.user_info.session_id,
        type=data.type,
        content=data.content,
        position=data.position,
        parent_id=data.parent_id,
    )
    db.session.add(annotation)
    db.session.commit()
    return jsonify(annotation.to_dict()), 201


def _own_annotation(annotation_id, token, session_id):
    annotation = MeetingAnnotation.query.filter_by(id=annotation_id, share_token=token,
                                                   session_id=session_id).first()
    if annotation is None:
        raise ApiError("Annotation not found or unauthorized", 404, "NOT_FOUND")
    return annotation


@bp.patch("/annotations")
@rate_limited("public_annotations", share_token_key)
def update_annotation():
    data = parse_body(AnnotationUpdate)
    active_share(data.share_token)
    annotation = _own_annotation(data.id, data.share_token, data.session_id)
    annotation.content = data.content
    db.session.commit()
    return jsonify(annotation.to_dict())


@bp.delete("/annotations")
@rate_limited("public_annotations", share_token_key)
def delete_annotation():
    data = parse_body(AnnotationDelete)
    active_share(data.share_token)
    db.session.delete(_own_annotation(data.id, data.share_token, data.session_id))
    db.session.commit()
    return jsonify({"success": True})


@bp.get("/notes")
@rate_limited("public_notes", share_token_key)
def get_notes():
    meeting_id = request.args.get("meeting_id")
    token = request.args.get("share_token")
    if not meeting_id or not token:
        raise ApiError("Missing required parameters", 400, "MISSING_PARAMS")
    active_share(token, meeting_id)
    notes = MeetingNotes.query.filter_by(meeting_id=meeting_id, share_token=token).first()
    if notes is None:
        return jsonify({"content": "", "last_edited_by": None, "version": 0})
    return jsonify(notes.to_dict())


def _write_notes(data):
    notes = MeetingNotes.query.filter_by(meeting_id=data.meeting_id, share_token=data.share_token).first()
    if notes is None:
        notes = MeetingNotes(meeting_id=data.meeting_id, share_token=data.share_token, version=0)
        db.session.add(notes)
    # last writer wins: no comparison against the version the editor started from
    notes.content = data.content
    notes.last_edited_by = data.last_edited_by.model_dump(by_alias=True)
    notes.version = (notes.version or 0) + 1
    notes.updated_at = utcnow()
    db.session.commit()
    return notes


@bp.post("/notes")
@rate_limited("public_notes", share_token_key)
def save_notes():
    data = parse_body(NotesWrite)
    active_share(data.share_token, data.meeting_id)
    try:
        notes = _write_notes(data)
    except IntegrityError:
        # another editor created the row first; overwrite it
        db.session.rollback()
        notes = _write_notes(data)
    current_app.logger.debug('Notes for share %s now at version %s', data.share_token, notes.version)
    return jsonify(notes.to_dict())

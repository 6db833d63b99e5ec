import uuid

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from ..errors import ApiError
from ..extensions import db
from ..jobs.insights import generate_insights
from ..jobs.summarize import summarize_meeting
from ..models import Meeting, MeetingInsights
from ..schemas import InsightsRequest, MeetingCreate, MeetingUpdate, TranslateRequest, SUPPORTED_LANGUAGES
from ..services import storage
from ..utils.decorators import api_login_required, rate_limited, user_key
from .helpers import owned_meeting, parse_body

bp = Blueprint("meetings", __name__, url_prefix="/meetings")


def meeting_detail(meeting):
    data = meeting.to_dict()
    data["utterances"] = meeting.utterances
    data["transcriptionState"] = meeting.transcription_state
    return data


@bp.get("")
@api_login_required
@rate_limited("meetings", user_key)
def list_meetings():
    query = Meeting.query.filter_by(user_id=current_user.id)
    q = (request.args.get("q") or "").strip()
    if q:
        query = query.filter(Meeting.title.ilike(f"%{q}%"))
    limit = request.args.get("limit", default=100, type=int)
    meetings = query.order_by(Meeting.created_at.desc()).limit(max(1, min(limit, 500))).all()
    return jsonify([m.to_dict() for m in meetings])


@bp.post("")
@api_login_required
@rate_limited("meetings", user_key)
def create_meeting():
    data = parse_body(MeetingCreate)
    meeting = Meeting(user_id=current_user.id, **data.model_dump())
    db.session.add(meeting)
    db.session.commit()
    return jsonify(meeting_detail(meeting)), 201


@bp.get("/<meeting_id>")
@api_login_required
@rate_limited("meetings", user_key)
def get_meeting(meeting_id):
    return jsonify(meeting_detail(owned_meeting(meeting_id)))


@bp.patch("/<meeting_id>")
@api_login_required
@rate_limited("meetings", user_key)
def update_meeting(meeting_id):
    data = parse_body(MeetingUpdate)
    meeting = owned_meeting(meeting_id)
    changes = data.model_dump(exclude_unset=True)
    if "action_items" in changes and changes["action_items"] is not None:
        changes["action_items"] = [dict(item, id=item.get("id") or f"action-{uuid.uuid4().hex[:12]}")
                                   for item in changes["action_items"]]
    for key, value in changes.items():
        setattr(meeting, key, value)
    db.session.commit()
    return jsonify(meeting_detail(meeting))


@bp.delete("/<meeting_id>")
@api_login_required
@rate_limited("meetings", user_key)
def delete_meeting(meeting_id):
    meeting = owned_meeting(meeting_id)
    audio = meeting.audio_path
    db.session.delete(meeting)
    db.session.commit()
    if audio:
        storage.delete_file(audio)
    return jsonify({"success": True})


@bp.post("/<meeting_id>/summarize")
@api_login_required
def summarize(meeting_id):
    meeting = owned_meeting(meeting_id)
    try:
        return jsonify(summarize_meeting(meeting.id))
    except ApiError:
        raise
    except Exception as e:
        current_app.logger.exception('Summarization failed for meeting %s', meeting_id)
        raise ApiError("Failed to generate summary", 500, "SUMMARIZATION_ERROR", str(e))


@bp.get("/<meeting_id>/translate")
@api_login_required
def get_translations(meeting_id):
    meeting = owned_meeting(meeting_id)
    translations = meeting.translations or {}
    language = request.args.get("language")
    if language and language in translations:
        return jsonify(translations[language])
    return jsonify(translations)


@bp.post("/<meeting_id>/translate")
@api_login_required
def translate(meeting_id):
    data = parse_body(TranslateRequest)
    meeting = owned_meeting(meeting_id)
    if not meeting.transcript:
        raise ApiError("No transcript available for translation", 400, "NO_TRANSCRIPT")

    cached = (meeting.translations or {}).get(data.target_language)
    if cached and not data.force_retranslate:
        return jsonify({"translation": cached, "cached": True})

    translator = current_app.extensions.get("summarizer")
    if translator is None:
        raise ApiError("Translation service not configured", 503, "SERVICE_UNAVAILABLE")

    content = {"title": meeting.title, "description": meeting.description, "transcript": meeting.transcript,
               "summary": meeting.summary}
    content = {k: v for k, v in content.items() if v}
    try:
        translated = translator.translate(content, SUPPORTED_LANGUAGES[data.target_language])
    except Exception as e:
        current_app.logger.exception('Translation to %s failed for meeting %s', data.target_language, meeting_id)
        raise ApiError("Failed to translate meeting", 500, "TRANSLATION_ERROR", str(e))

    translated["sourceLanguage"] = meeting.language or "en"
    meeting.translations = dict(meeting.translations or {}, **{data.target_language: translated})
    db.session.commit()
    return jsonify({
        "translation": translated,
        "cached": False,
        "message": f"Meeting successfully translated to {data.target_language}",
    })


@bp.get("/<meeting_id>/insights")
@api_login_required
def get_insights(meeting_id):
    meeting = owned_meeting(meeting_id)
    row = MeetingInsights.query.filter_by(meeting_id=meeting.id).first()
    if row is None:
        raise ApiError("Insights not generated yet", 404, "NOT_FOUND")
    return jsonify(row.to_dict())


@bp.post("/<meeting_id>/insights")
@api_login_required
def create_insights(meeting_id):
    meeting = owned_meeting(meeting_id)
    force = parse_body(InsightsRequest).force
    row = MeetingInsights.query.filter_by(meeting_id=meeting.id).first()
    if row is not None and not force:
        return jsonify(row.to_dict())
    return jsonify(generate_insights(meeting.id).to_dict()), 201

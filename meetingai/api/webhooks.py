from flask import Blueprint, current_app, jsonify, request

from ..errors import ApiError
from ..extensions import db
from ..jobs.transcription import (
    EMPTY_TRANSCRIPT_ERROR, WEBHOOK_TOKEN_HEADER, apply_completed_transcript, has_speech, verify_webhook_token,
)
from ..models import Meeting

bp = Blueprint("webhooks", __name__, url_prefix="/webhooks")


@bp.post("/assemblyai")
def assemblyai():
    """Provider push on job completion; acknowledged whenever the payload parses."""
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or not (body.get("transcript_id") or body.get("id")):
        raise ApiError("Invalid webhook payload", 400, "WEBHOOK_ERROR")
    transcript_id = body.get("transcript_id") or body.get("id")
    status = body.get("status")

    if status == "error":
        current_app.logger.error('Transcription %s failed: %s', transcript_id, body.get("error"))
        return jsonify({"received": True, "status": "error", "error": body.get("error")})
    if status != "completed":
        return jsonify({"received": True, "status": status})

    meeting_id = request.args.get("meeting_id") or request.headers.get("x-meeting-id")
    if not meeting_id:
        raise ApiError("Missing meeting ID", 400, "WEBHOOK_ERROR")
    if not verify_webhook_token(meeting_id, request.headers.get(WEBHOOK_TOKEN_HEADER)):
        raise ApiError("Invalid webhook token", 401, "AUTH_REQUIRED")

    ack = {"received": True, "status": "completed", "meetingId": meeting_id, "transcriptId": transcript_id}
    meeting = db.session.get(Meeting, meeting_id)
    if meeting is None:
        current_app.logger.warning('Webhook for unknown meeting %s (transcript %s)', meeting_id, transcript_id)
        return jsonify(dict(ack, persisted=False))

    result = body
    if body.get("text") is None and body.get("utterances") is None:
        client = current_app.extensions.get("assemblyai")
        if client is None:
            raise ApiError("Transcription service is not configured", 503, "SERVICE_UNAVAILABLE")
        try:
            result = client.get_transcript(transcript_id)
        except Exception as e:
            current_app.logger.exception('Failed to fetch transcript %s for webhook', transcript_id)
            raise ApiError("Failed to process webhook", 500, "WEBHOOK_ERROR", str(e))

    if not has_speech(result):
        current_app.logger.error('Transcription %s for meeting %s completed without speech', transcript_id, meeting_id)
        return jsonify(dict(ack, status="error", error=EMPTY_TRANSCRIPT_ERROR, persisted=False))

    try:
        written = apply_completed_transcript(meeting_id, result)
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Failed to store transcript %s for meeting %s', transcript_id, meeting_id)
        return jsonify(dict(ack, persisted=False))
    return jsonify(dict(ack, persisted=True, duplicate=not written))

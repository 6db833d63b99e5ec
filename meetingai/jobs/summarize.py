from flask import current_app, has_app_context

from ..errors import ApiError
from ..extensions import db
from ..models import Meeting
from ..services.openai_client import fallback_summary


def summarize_meeting(meeting_id, force=False):
    """Generate summary and action items; falls back to an extractive summary when the model fails."""
    meeting = db.session.get(Meeting, meeting_id)
    if meeting is None:
        raise ApiError("Meeting not found", 404, "NOT_FOUND")
    if not meeting.transcript:
        raise ApiError("No transcript available for summarization", 400, "NO_TRANSCRIPT")
    if meeting.summary and not force:
        raise ApiError("Meeting already has a summary", 400, "ALREADY_SUMMARIZED")
    summarizer = current_app.extensions.get("summarizer")
    if summarizer is None:
        raise ApiError("Summarization service is not configured", 503, "SERVICE_UNAVAILABLE")

    try:
        summary = summarizer.generate_summary(meeting.transcript, meeting.participants or [])
        action_items = summarizer.extract_action_items(meeting.transcript, summary, meeting.participants or [])
    except Exception as e:
        current_app.logger.exception('Summary generation failed for meeting %s, using fallback', meeting_id)
        meeting.summary = fallback_summary(meeting.transcript)
        db.session.commit()
        return {"success": True, "summary": meeting.summary, "actionItems": [], "fallback": True, "aiError": str(e)}

    meeting.summary = summary
    meeting.action_items = action_items or None
    db.session.commit()
    current_app.logger.info('Summary stored for meeting %s (%s action items)', meeting_id, len(action_items))
    return {"success": True, "summary": summary, "actionItems": action_items}


def summarize_meeting_job(meeting_id):
    """Queue entry point: makes sure an app context exists in worker processes."""
    if has_app_context():
        return _run(meeting_id)
    from .. import create_app
    with create_app().app_context():
        return _run(meeting_id)


def _run(meeting_id):
    try:
        return summarize_meeting(meeting_id)
    except ApiError as e:
        # already summarized, no transcript or no summarizer: nothing to do
        current_app.logger.info('Skipping summarization for meeting %s: %s', meeting_id, e.code)
        return None

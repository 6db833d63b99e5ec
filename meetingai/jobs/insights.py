from flask import current_app, has_app_context

from ..errors import ApiError
from ..extensions import db
from ..models import Meeting, MeetingInsights
from ..services.insights import analyze_meeting
from ..utils.time import utcnow


def generate_insights(meeting_id):
    """Compute and store insights for a transcribed meeting; returns the stored row."""
    meeting = db.session.get(Meeting, meeting_id)
    if meeting is None:
        raise ApiError("Meeting not found", 404, "NOT_FOUND")
    if not meeting.utterances:
        raise ApiError("Meeting has no speaker-labelled transcript", 400, "NO_TRANSCRIPT")

    try:
        data = analyze_meeting(meeting.utterances, meeting.duration, current_app.extensions.get("sentiment"))
    except Exception as e:
        current_app.logger.exception('Insight generation failed for meeting %s', meeting_id)
        raise ApiError("Failed to generate insights", 500, "INSIGHTS_ERROR", str(e))

    row = MeetingInsights.query.filter_by(meeting_id=meeting_id).first()
    if row is None:
        row = MeetingInsights(meeting_id=meeting_id)
        db.session.add(row)
    for key, value in data.items():
        setattr(row, key, value)
    row.generated_at = utcnow()
    db.session.commit()
    return row


def generate_insights_job(meeting_id):
    if has_app_context():
        return generate_insights(meeting_id).id
    from .. import create_app
    with create_app().app_context():
        return generate_insights(meeting_id).id

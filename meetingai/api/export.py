from io import BytesIO

from flask import Blueprint, current_app, jsonify, send_file
from markupsafe import escape

from ..errors import ApiError
from ..models import MeetingComment
from ..schemas import ExportRequest, EmailExportRequest
from ..services.export import export_meeting
from ..services.mail import send_export
from ..utils.decorators import api_login_required, rate_limited, user_key
from .helpers import owned_meeting, parse_body

bp = Blueprint("export", __name__, url_prefix="/meetings")


def _render(meeting, data):
    comments = None
    if data.include_comments:
        comments = (MeetingComment.query.filter_by(meeting_id=meeting.id)
                    .order_by(MeetingComment.created_at.asc()).all())
    try:
        return export_meeting(
            meeting, data.format,
            include_transcript=data.include_transcript,
            include_summary=data.include_summary,
            include_action_items=data.include_action_items,
            comments=comments,
        )
    except Exception as e:
        current_app.logger.exception('Export of meeting %s as %s failed', meeting.id, data.format)
        raise ApiError("Failed to export meeting", 500, "EXPORT_ERROR", str(e))


@bp.post("/<meeting_id>/export")
@api_login_required
def export(meeting_id):
    data = parse_body(ExportRequest)
    meeting = owned_meeting(meeting_id)
    content, mimetype, filename = _render(meeting, data)
    return send_file(BytesIO(content), mimetype=mimetype, as_attachment=True, download_name=filename)


@bp.post("/<meeting_id>/export/email")
@api_login_required
@rate_limited("sharing", user_key)
def export_email(meeting_id):
    data = parse_body(EmailExportRequest)
    meeting = owned_meeting(meeting_id)
    if not current_app.config.get("SENDGRID_API_KEY"):
        raise ApiError("Email service not configured", 503, "SERVICE_UNAVAILABLE")

    content, mimetype, filename = _render(meeting, data)
    note = f"<p>{escape(data.message)}</p>" if data.message else ""
    html = f"<p>Attached is the export of <strong>{escape(meeting.title)}</strong>.</p>{note}"
    try:
        status = send_export(data.recipients, f"Meeting notes: {meeting.title}", html, content, filename, mimetype)
    except Exception as e:
        current_app.logger.exception('Emailing export of meeting %s failed', meeting_id)
        raise ApiError("Failed to send email", 500, "EXPORT_ERROR", str(e))
    return jsonify({"success": True, "status": status, "recipients": data.recipients})

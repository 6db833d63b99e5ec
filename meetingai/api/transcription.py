from flask import Blueprint, jsonify

from ..jobs import transcription as job
from ..utils.decorators import api_login_required, rate_limited, user_key
from .helpers import owned_meeting

bp = Blueprint("transcription", __name__, url_prefix="/meetings")


@bp.post("/<meeting_id>/transcribe")
@api_login_required
@rate_limited("transcription", user_key)
def transcribe(meeting_id):
    meeting = owned_meeting(meeting_id)
    return jsonify(job.start_transcription(meeting)), 202


@bp.route("/<meeting_id>/transcription-status", methods=["GET", "POST"])
@api_login_required
def transcription_status(meeting_id):
    return jsonify(job.check_transcription(owned_meeting(meeting_id)))


@bp.delete("/<meeting_id>/transcription")
@api_login_required
def clear_transcription(meeting_id):
    return jsonify(job.clear_transcription(owned_meeting(meeting_id)))

import os
import time
import uuid

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from ..errors import ApiError
from ..extensions import db
from ..models import Meeting, MeetingTemplate
from ..services import storage
from ..services.templates import apply_template
from ..services.uploads import validate_upload, sanitize_filename
from ..utils.decorators import api_login_required, rate_limited, user_key
from ..utils.time import utcnow

bp = Blueprint("upload", __name__)


def _stream_size(stream):
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _default_title(original_name):
    template = MeetingTemplate.query.filter_by(user_id=current_user.id, is_default=True).first()
    if template is not None:
        title = apply_template(template.title_template)
        description = apply_template(template.description_template) if template.description_template else None
        return title or original_name, description, list(template.participants or [])
    return os.path.splitext(original_name)[0] or "Untitled meeting", None, []


@bp.post("/upload")
@api_login_required
@rate_limited("upload", user_key)
def upload():
    file = request.files.get("file")
    if file is None or not file.filename:
        raise ApiError("No file provided", 400, "NO_FILE")

    size = _stream_size(file.stream)
    error = validate_upload(file.mimetype, size, file.filename, current_app.config.get("MAX_UPLOAD_BYTES"))
    if error:
        raise ApiError(error, 400, "INVALID_FILE")

    original_name = sanitize_filename(file.filename)
    ext = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else "bin"
    stored_name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.{ext}"
    key = f"{current_user.id}/{stored_name}"

    try:
        ref = storage.save_file(file.stream, key, file.mimetype)
        url = storage.signed_url(ref, current_app.config.get("SIGNED_URL_EXPIRY"))
    except Exception as e:
        current_app.logger.exception('Upload failed for user %s', current_user.id)
        raise ApiError("Failed to upload file", 500, "UPLOAD_ERROR", str(e))

    title = (request.form.get("title") or "").strip()
    description = request.form.get("description")
    participants = []
    if not title:
        title, template_description, participants = _default_title(original_name)
        description = description or template_description

    meeting = Meeting(user_id=current_user.id, title=title[:255], description=description, audio_url=url,
                      audio_path=ref, participants=participants, recorded_at=utcnow())
    db.session.add(meeting)
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception('Failed to create meeting for upload %s', key)
        # the stored object has no meeting row pointing at it
        storage.delete_file(ref)
        raise ApiError("Failed to create meeting", 500, "UPLOAD_ERROR", str(e))
    current_app.logger.info('Stored upload %s (%s bytes) as meeting %s', key, size, meeting.id)

    return jsonify({
        "success": True,
        "url": url,
        "path": key,
        "fileName": stored_name,
        "originalName": original_name,
        "meeting": meeting.to_dict(),
    }), 201

"""Server side of the transcription job.

A meeting moves idle -> queued (``transcript_id`` recorded) -> completed
(``transcript`` written, ``transcript_id`` cleared). The provider webhook and
the status-check endpoint both finish a job through
``apply_completed_transcript``; whichever reaches it first does the write.
"""
import hashlib
import hmac

from flask import current_app
from sqlalchemy import update

from ..errors import ApiError
from ..extensions import db, rq
from ..models import Meeting
from ..services import storage
from ..services.assemblyai import extract_speakers, format_transcript
from ..utils.time import utcnow

UNKNOWN_SPEAKER = "Unknown Speaker"
WEBHOOK_TOKEN_HEADER = "x-webhook-token"

# provider job states reported to pollers
STATUS_MAP = {"queued": "pending", "processing": "processing", "completed": "completed", "error": "error"}
EMPTY_TRANSCRIPT_ERROR = "Transcription completed without any speech"


def webhook_token(meeting_id, secret):
    return hmac.new(secret.encode("utf-8"), str(meeting_id).encode("utf-8"), hashlib.sha256).hexdigest()


def verify_webhook_token(meeting_id, token):
    """True when the webhook may act on ``meeting_id``.

    Without a configured secret any meeting id is accepted.
    """
    secret = current_app.config.get("WEBHOOK_SECRET")
    if not secret:
        current_app.logger.warning('WEBHOOK_SECRET not set; accepting unsigned webhook for meeting %s', meeting_id)
        return True
    return bool(token) and hmac.compare_digest(webhook_token(meeting_id, secret), token)


def webhook_url(meeting_id):
    base = (current_app.config.get("APP_URL") or "").rstrip("/")
    return f"{base}/webhooks/assemblyai?meeting_id={meeting_id}"


def has_speech(result):
    return bool(format_transcript(result).strip())


def _transcription_client():
    client = current_app.extensions.get("assemblyai")
    if client is None:
        raise ApiError("Transcription service is not configured", 503, "SERVICE_UNAVAILABLE")
    return client


def _provider_audio_url(client, meeting):
    url = meeting.audio_url or meeting.audio_path
    if url.startswith(("http://", "https://")):
        return url
    # local or private storage: hand the provider the bytes instead
    return client.upload(storage.download_bytes(meeting.audio_path or url))


def start_transcription(meeting):
    if not (meeting.audio_url or meeting.audio_path):
        raise ApiError("No audio file available for transcription", 400, "NO_AUDIO")
    if meeting.transcript is not None:
        raise ApiError("Meeting already has a transcript", 400, "ALREADY_TRANSCRIBED")
    if meeting.transcript_id:
        raise ApiError("Transcription already in progress", 409, "ALREADY_TRANSCRIBING",
                       {"transcriptId": meeting.transcript_id})
    client = _transcription_client()

    secret = current_app.config.get("WEBHOOK_SECRET")
    auth = (WEBHOOK_TOKEN_HEADER, webhook_token(meeting.id, secret)) if secret else None
    try:
        audio_url = _provider_audio_url(client, meeting)
        job = client.create_transcript(audio_url, webhook_url=webhook_url(meeting.id), webhook_auth=auth)
    except Exception as e:
        current_app.logger.exception('Failed to start transcription for meeting %s', meeting.id)
        raise ApiError("Failed to start transcription", 500, "TRANSCRIPTION_ERROR", str(e))

    res = db.session.execute(
        update(Meeting)
        .where(Meeting.id == meeting.id, Meeting.transcript_id.is_(None), Meeting.transcript.is_(None))
        .values(transcript_id=job["id"], updated_at=utcnow())
    )
    if res.rowcount != 1:
        db.session.rollback()
        current_app.logger.info('Duplicate transcription start for meeting %s (job %s discarded)', meeting.id, job["id"])
        raise ApiError("Transcription already in progress", 409, "ALREADY_TRANSCRIBING")

    old = {"transcript_id": None}
    db.session.commit()
    _record_meeting_update(meeting.id, old)
    current_app.logger.info('Transcription %s started for meeting %s', job["id"], meeting.id)
    return {"transcriptId": job["id"], "status": STATUS_MAP.get(job.get("status"), "pending")}


def _record_meeting_update(meeting_id, old):
    """Publish a change event for a row written with a bulk UPDATE (bypasses flush hooks)."""
    publisher = current_app.extensions.get("change_publisher")
    meeting = db.session.get(Meeting, meeting_id)
    if publisher is not None and meeting is not None:
        new = meeting.to_dict()
        publisher.publish_now("meetings", "UPDATE", new, dict(new, **old))


def apply_completed_transcript(meeting_id, result):
    """Fold a completed provider result into the meeting, once.

    Returns True only for the call that wrote the transcript; that call also
    starts summarization. A result without speech is never stored, the job id
    stays so the job can be cleared and restarted.
    """
    transcript = format_transcript(result)
    if not has_speech(result):
        current_app.logger.warning('Transcription %s for meeting %s completed without speech',
                                   result.get("id"), meeting_id)
        return False

    utterances = result.get("utterances") or []
    values = {
        "transcript": transcript,
        "utterances": utterances or None,
        "participants": extract_speakers(result) or [UNKNOWN_SPEAKER],
        "language": result.get("language_code"),
        "transcript_id": None,
        "updated_at": utcnow(),
    }
    if result.get("audio_duration") is not None:
        values["duration"] = int(round(float(result["audio_duration"])))

    res = db.session.execute(
        update(Meeting).where(Meeting.id == meeting_id, Meeting.transcript.is_(None)).values(**values)
    )
    db.session.commit()
    if res.rowcount != 1:
        current_app.logger.info('Transcript for meeting %s already stored, skipping', meeting_id)
        return False

    _record_meeting_update(meeting_id, {"transcript": None, "transcript_id": result.get("id")})
    current_app.logger.info('Transcript stored for meeting %s (%s speakers)', meeting_id, len(values["participants"]))
    trigger_summarization(meeting_id)
    return True


def trigger_summarization(meeting_id):
    """Fire and forget; never fails the caller."""
    if current_app.extensions.get("summarizer") is None:
        return
    try:
        from .summarize import summarize_meeting_job
        rq.enqueue(summarize_meeting_job, meeting_id, job_timeout=600)
    except Exception:
        current_app.logger.exception('Failed to start summarization for meeting %s', meeting_id)


def check_transcription(meeting):
    """Status-check path: reports the job state, finishing it when the provider is done."""
    if meeting.transcript is not None:
        return {"status": "completed", "hasTranscript": True, "language": meeting.language}
    if not meeting.transcript_id:
        return {"status": "not_started", "hasTranscript": False}

    client = _transcription_client()
    try:
        result = client.get_transcript(meeting.transcript_id)
    except Exception as e:
        current_app.logger.exception('Failed to check transcription %s', meeting.transcript_id)
        raise ApiError("Failed to check transcription status", 500, "STATUS_ERROR", str(e))

    status = STATUS_MAP.get(result.get("status"), "processing")
    if status == "completed" and not has_speech(result):
        return {"status": "error", "hasTranscript": False, "error": EMPTY_TRANSCRIPT_ERROR}
    if status == "completed":
        apply_completed_transcript(meeting.id, result)
        return {"status": "completed", "hasTranscript": True, "language": result.get("language_code")}
    if status == "error":
        # transcript_id stays set until the job is cleared explicitly
        return {"status": "error", "hasTranscript": False, "error": result.get("error") or "Transcription failed"}
    return {"status": status, "hasTranscript": False}


def clear_transcription(meeting):
    """Forget a failed or stuck provider job so a new one can be started."""
    if meeting.transcript is not None:
        raise ApiError("Meeting already has a transcript", 400, "ALREADY_TRANSCRIBED")
    old_id = meeting.transcript_id
    meeting.transcript_id = None
    db.session.commit()
    current_app.logger.info('Cleared transcription job %s for meeting %s', old_id, meeting.id)
    return {"status": "not_started", "hasTranscript": False}

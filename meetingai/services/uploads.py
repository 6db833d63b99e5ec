import re

from werkzeug.utils import secure_filename

ALLOWED_MIME_TYPES = {
    "audio/mpeg": ("mp3",),
    "audio/mp3": ("mp3",),
    "audio/wav": ("wav",),
    "audio/x-wav": ("wav",),
    "audio/m4a": ("m4a",),
    "audio/x-m4a": ("m4a",),
    "audio/webm": ("webm",),
    "video/mp4": ("mp4",),
    "video/webm": ("webm",),
    "video/quicktime": ("mov",),
}

MAX_FILE_SIZE = 500 * 1024 * 1024


def validate_upload(mimetype, size, filename, max_size=MAX_FILE_SIZE):
    """Return an error message for an unacceptable upload, or None."""
    if mimetype not in ALLOWED_MIME_TYPES:
        return f"Invalid file type: {mimetype}. Allowed types: audio (MP3, WAV, M4A) and video (MP4, WebM)"

    if size > max_size:
        return f"File too large: {round(size / (1024 * 1024))}MB. Maximum size is {max_size // (1024 * 1024)}MB"

    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else None
    if extension and extension not in ALLOWED_MIME_TYPES[mimetype]:
        return f"File extension .{extension} doesn't match file type {mimetype}"
    return None


def sanitize_filename(name):
    name = re.sub(r"[^a-zA-Z0-9._-]", "_", secure_filename(name or ""))
    name = re.sub(r"\.{2,}", ".", name)
    return name[:255]

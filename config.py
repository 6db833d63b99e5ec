import os
from dotenv import load_dotenv
load_dotenv()


def _int_env(name, default):
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///meetings.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # public base URL, used for webhook callbacks and share links
    APP_URL = os.getenv("APP_URL", "http://localhost:5000")

    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")
    LOCAL_STORAGE_DIR = os.getenv("LOCAL_STORAGE_DIR", "./storage")
    S3_ENDPOINT = os.getenv("S3_ENDPOINT")
    S3_REGION = os.getenv("S3_REGION")
    S3_BUCKET = os.getenv("S3_BUCKET", "meeting-recordings")
    S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY")
    S3_SECRET_KEY = os.getenv("S3_SECRET_KEY")
    SIGNED_URL_EXPIRY = _int_env("SIGNED_URL_EXPIRY", 60 * 60 * 24 * 365)
    MAX_UPLOAD_BYTES = _int_env("MAX_UPLOAD_BYTES", 500 * 1024 * 1024)

    ASSEMBLYAI_API_KEY = os.getenv("ASSEMBLYAI_API_KEY")
    ASSEMBLYAI_BASE_URL = os.getenv("ASSEMBLYAI_BASE_URL", "https://api.assemblyai.com/v2")
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY")

    WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET")
    CRON_SECRET = os.getenv("CRON_SECRET")

    SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
    MAIL_FROM = os.getenv("MAIL_FROM", "noreply@example.com")
    MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "Meeting Notes")

    TRANSCRIPTION_POLL_INTERVAL = float(os.getenv("TRANSCRIPTION_POLL_INTERVAL", "5"))

    # name -> (max requests, window seconds)
    RATE_LIMITS = {
        "public_annotations": (30, 60),
        "public_notes": (60, 60),
        "public_shares": (60, 60),
        "meetings": (120, 60),
        "upload": (10, 3600),
        "transcription": (5, 3600),
        "sharing": (20, 3600),
    }

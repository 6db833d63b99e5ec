from .auth import bp as auth_bp
from .features import bp as features_bp
from .upload import bp as upload_bp
from .meetings import bp as meetings_bp
from .transcription import bp as transcription_bp
from .comments import bp as comments_bp
from .export import bp as export_bp
from .shares import bp as shares_bp
from .public import bp as public_bp
from .templates import bp as templates_bp
from .analytics import bp as analytics_bp
from .webhooks import bp as webhooks_bp
from .cron import bp as cron_bp

blueprints = (
    auth_bp, features_bp, upload_bp, meetings_bp, transcription_bp, comments_bp, export_bp,
    shares_bp, public_bp, templates_bp, analytics_bp, webhooks_bp, cron_bp,
)

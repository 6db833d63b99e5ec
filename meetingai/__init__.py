from flask import Flask
from flask_migrate import Migrate

from .extensions import db, login_manager, rq
from .errors import ApiError, register_error_handlers

migrate = Migrate()


def _provider_clients(app):
    """Process-scoped provider clients; None where no key is configured."""
    from .services.assemblyai import AssemblyAIClient
    from .services.openai_client import OpenAIClient
    from .services.sentiment import SentimentClient

    cfg = app.config
    clients = {"assemblyai": None, "summarizer": None, "sentiment": None}
    if cfg.get("ASSEMBLYAI_API_KEY"):
        clients["assemblyai"] = AssemblyAIClient(cfg["ASSEMBLYAI_API_KEY"], cfg.get("ASSEMBLYAI_BASE_URL"))
    if cfg.get("OPENAI_API_KEY"):
        clients["summarizer"] = OpenAIClient(cfg["OPENAI_API_KEY"], model=cfg.get("OPENAI_MODEL", "gpt-4o-mini"))
    if cfg.get("HUGGINGFACE_API_KEY"):
        clients["sentiment"] = SentimentClient(cfg["HUGGINGFACE_API_KEY"])
    return clients


def create_app(config_object="config.Config", **overrides):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.config.update(overrides)
    # leave headroom for multipart framing; the upload route enforces the real limit
    app.config.setdefault("MAX_CONTENT_LENGTH", app.config.get("MAX_UPLOAD_BYTES", 500 * 1024 * 1024) + 1024 * 1024)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    rq.init_app(app)

    from .utils.rate_limiter import build_rate_limiters
    from .realtime.publisher import ChangePublisher, install_session_hooks

    app.extensions["rate_limiters"] = build_rate_limiters(app.config.get("RATE_LIMITS", {}))
    for name, client in _provider_clients(app).items():
        app.extensions.setdefault(name, client)
    app.extensions["change_publisher"] = ChangePublisher(rq.redis)
    install_session_hooks(db.session)

    @login_manager.user_loader
    def load_user(user_id):
        from .models.user import User
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        raise ApiError("Unauthorized", 401, "AUTH_REQUIRED")

    register_error_handlers(app)

    from .api import blueprints
    for bp in blueprints:
        app.register_blueprint(bp)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app

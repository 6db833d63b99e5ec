from flask import Blueprint, current_app, jsonify

bp = Blueprint("features", __name__)


@bp.get("/config")
def feature_flags():
    ext = current_app.extensions
    return jsonify({
        "transcriptionEnabled": ext.get("assemblyai") is not None,
        "summarizationEnabled": ext.get("summarizer") is not None,
        "sentimentEnabled": ext.get("sentiment") is not None,
    })

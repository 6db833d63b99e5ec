import hmac

from flask import Blueprint, current_app, jsonify, request

from ..errors import ApiError
from ..services.shares import cleanup_expired_shares

bp = Blueprint("cron", __name__, url_prefix="/cron")


@bp.get("/cleanup-shares")
def cleanup_shares():
    secret = current_app.config.get("CRON_SECRET")
    supplied = request.headers.get("Authorization", "")
    if not secret or not hmac.compare_digest(supplied, f"Bearer {secret}"):
        raise ApiError("Unauthorized", 401, "UNAUTHORIZED")
    try:
        deleted = cleanup_expired_shares()
    except Exception as e:
        current_app.logger.exception('Expired share cleanup failed')
        raise ApiError("Failed to cleanup expired shares", 500, "CLEANUP_ERROR", str(e))
    return jsonify({"success": True, "deletedCount": deleted,
                    "message": f"Cleaned up {deleted} expired share links"})

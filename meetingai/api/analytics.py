from flask import Blueprint, jsonify
from flask_login import current_user

from ..models import Meeting
from ..services.analytics import calculate_analytics
from ..utils.decorators import api_login_required

bp = Blueprint("analytics", __name__)


@bp.get("/analytics")
@api_login_required
def analytics():
    meetings = Meeting.query.filter_by(user_id=current_user.id).order_by(Meeting.created_at.desc()).all()
    return jsonify(calculate_analytics(meetings))

from flask import Blueprint, jsonify
from flask_login import current_user

from ..errors import ApiError
from ..extensions import db
from ..models import MeetingTemplate
from ..schemas import TemplateApply, TemplateCreate, TemplateUpdate
from ..services.templates import apply_template, validate_template
from ..utils.decorators import api_login_required
from .helpers import parse_body

bp = Blueprint("templates", __name__, url_prefix="/templates")


def _check(fields):
    for label, key in (("Title", "title_template"), ("Description", "description_template")):
        if fields.get(key):
            error = validate_template(fields[key])
            if error:
                raise ApiError(f"{label} template error: {error}", 400, "INVALID_TEMPLATE")


def _clear_other_defaults(keep_id=None):
    query = MeetingTemplate.query.filter_by(user_id=current_user.id, is_default=True)
    if keep_id is not None:
        query = query.filter(MeetingTemplate.id != keep_id)
    for t in query.all():
        t.is_default = False


def _owned_template(template_id):
    template = MeetingTemplate.query.filter_by(id=template_id, user_id=current_user.id).first()
    if template is None:
        raise ApiError("Template not found", 404, "NOT_FOUND")
    return template


@bp.get("")
@api_login_required
def list_templates():
    templates = (MeetingTemplate.query.filter_by(user_id=current_user.id)
                 .order_by(MeetingTemplate.is_default.desc(), MeetingTemplate.created_at.desc()).all())
    return jsonify([t.to_dict() for t in templates])


@bp.post("")
@api_login_required
def create_template():
    fields = parse_body(TemplateCreate).model_dump()
    _check(fields)
    if fields["is_default"]:
        _clear_other_defaults()
    template = MeetingTemplate(user_id=current_user.id, **fields)
    db.session.add(template)
    db.session.commit()
    return jsonify(template.to_dict()), 201


@bp.patch("/<template_id>")
@api_login_required
def update_template(template_id):
    fields = parse_body(TemplateUpdate).model_dump(exclude_unset=True)
    _check(fields)
    template = _owned_template(template_id)
    if fields.get("is_default"):
        _clear_other_defaults(keep_id=template.id)
    for key, value in fields.items():
        setattr(template, key, value)
    db.session.commit()
    return jsonify(template.to_dict())


@bp.delete("/<template_id>")
@api_login_required
def delete_template(template_id):
    db.session.delete(_owned_template(template_id))
    db.session.commit()
    return jsonify({"success": True})


@bp.post("/<template_id>/apply")
@api_login_required
def apply(template_id):
    template = _owned_template(template_id)
    data = parse_body(TemplateApply)
    values = data.model_dump(exclude={"date"}, exclude_none=True)
    if "participant" not in values and template.participants:
        values["participant"] = ", ".join(template.participants)
    return jsonify({
        "title": apply_template(template.title_template, values, now=data.date),
        "description": apply_template(template.description_template, values, now=data.date)
        if template.description_template else None,
        "participants": list(template.participants or []),
    })

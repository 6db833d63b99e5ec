"""Meeting title/description templates.

Placeholders are written ``{name}``; ``{{name}}`` is accepted as well.
"""
import re
from datetime import datetime

VALID_PLACEHOLDERS = ("date", "time", "participant", "project", "topic")
MAX_TEMPLATE_LENGTH = 500

_PLACEHOLDER = re.compile(r"\{\{?\s*([^{}]+?)\s*\}?\}")


def extract_placeholders(template):
    found = []
    for name in _PLACEHOLDER.findall(template or ""):
        if name not in found:
            found.append(name)
    return found


def validate_template(template):
    """Return an error message, or None when the template is usable."""
    if not template or not template.strip():
        return "Template cannot be empty"
    if len(template) > MAX_TEMPLATE_LENGTH:
        return f"Template is too long (max {MAX_TEMPLATE_LENGTH} characters)"
    for name in extract_placeholders(template):
        if name.lower() not in VALID_PLACEHOLDERS:
            return f"Invalid placeholder: {name}. Valid placeholders are: {', '.join(VALID_PLACEHOLDERS)}"
    return None


def apply_template(template, values=None, now=None):
    now = now or datetime.now()
    merged = {"date": now.strftime("%Y-%m-%d"), "time": now.strftime("%H:%M")}
    merged.update({k: v for k, v in (values or {}).items() if v is not None})

    def sub(m):
        key = m.group(1).lower()
        return str(merged[key]) if key in merged else ""

    return re.sub(r"\s{2,}", " ", _PLACEHOLDER.sub(sub, template or "")).strip()

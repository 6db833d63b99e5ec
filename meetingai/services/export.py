"""Render a meeting as a downloadable text, DOCX or PDF document."""
import re
import textwrap
from io import BytesIO

import docx
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

CONTENT_TYPES = {
    "txt": "text/plain; charset=utf-8",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "pdf": "application/pdf",
}


def _fmt_duration(seconds):
    if not seconds:
        return None
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs:02d}s"


def build_sections(meeting, include_transcript=True, include_summary=True, include_action_items=True,
                   comments=None):
    """Format-neutral outline: ``(heading, [paragraphs])`` pairs, the first being meeting details."""
    details = []
    when = meeting.recorded_at or meeting.created_at
    if when:
        details.append(f"Date: {when.strftime('%Y-%m-%d %H:%M')}")
    if _fmt_duration(meeting.duration):
        details.append(f"Duration: {_fmt_duration(meeting.duration)}")
    if meeting.participants:
        details.append(f"Participants: {', '.join(meeting.participants)}")
    if meeting.description:
        details.append(meeting.description)
    sections = [("Meeting Details", details)]

    summary = meeting.summary or {}
    if include_summary and summary:
        body = [summary.get("overview") or ""]
        for label, key in (("Key Points", "key_points"), ("Decisions", "decisions"), ("Next Steps", "next_steps")):
            items = summary.get(key) or []
            if items:
                body.append(f"{label}:")
                body.extend(f"- {item}" for item in items)
        sections.append(("Summary", [p for p in body if p]))

    if include_action_items and meeting.action_items:
        lines = []
        for item in meeting.action_items:
            mark = "[x]" if item.get("completed") else "[ ]"
            extra = []
            if item.get("assignee"):
                extra.append(f"assignee: {item['assignee']}")
            if item.get("due_date"):
                extra.append(f"due: {item['due_date']}")
            if item.get("priority"):
                extra.append(f"priority: {item['priority']}")
            lines.append(f"{mark} {item.get('task', '')}" + (f" ({', '.join(extra)})" if extra else ""))
        sections.append(("Action Items", lines))

    if comments:
        sections.append(("Comments", [
            f"{c.user_name or 'Anonymous'} on \"{c.selection_text}\": {c.text}" for c in comments
        ]))

    if include_transcript and meeting.transcript:
        sections.append(("Transcript", [p for p in meeting.transcript.split("\n\n") if p.strip()]))
    return sections


def render_text(title, sections):
    out = [title, "=" * len(title), ""]
    for heading, paragraphs in sections:
        if not paragraphs:
            continue
        out.extend([heading, "-" * len(heading)])
        out.extend(paragraphs)
        out.append("")
    return "\n".join(out).encode("utf-8")


def render_docx(title, sections):
    document = docx.Document()
    document.add_heading(title, level=0)
    for heading, paragraphs in sections:
        if not paragraphs:
            continue
        document.add_heading(heading, level=1)
        for p in paragraphs:
            if p.startswith("- "):
                document.add_paragraph(p[2:], style="List Bullet")
            else:
                document.add_paragraph(p)
    buf = BytesIO()
    document.save(buf)
    return buf.getvalue()


def render_pdf(title, sections):
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    width, height = A4
    x, top, bottom = 40, height - 40, 40
    y = top

    def line(text, font="Helvetica", size=10, step=14):
        nonlocal y
        if y < bottom:
            c.showPage()
            y = top
        c.setFont(font, size)
        c.drawString(x, y, text)
        y -= step

    line(title, "Helvetica-Bold", 16, 24)
    for heading, paragraphs in sections:
        if not paragraphs:
            continue
        y -= 6
        line(heading, "Helvetica-Bold", 12, 18)
        for p in paragraphs:
            # the base fonts only cover latin-1
            p = p.encode("latin-1", "replace").decode("latin-1")
            for wrapped in textwrap.wrap(p, width=95) or [""]:
                line(wrapped)
            y -= 4
    c.showPage()
    c.save()
    return buf.getvalue()


RENDERERS = {"txt": render_text, "docx": render_docx, "pdf": render_pdf}


def export_meeting(meeting, fmt="txt", **options):
    """Returns ``(bytes, content_type, filename)``."""
    if fmt not in RENDERERS:
        raise ValueError(f"Unsupported export format: {fmt}")
    title = meeting.title or "Meeting"
    data = RENDERERS[fmt](title, build_sections(meeting, **options))
    slug = re.sub(r"[^A-Za-z0-9]+", "-", title).strip("-").lower() or "meeting"
    return data, CONTENT_TYPES[fmt], f"{slug}.{fmt}"

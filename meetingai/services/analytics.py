import re
from datetime import datetime, timedelta

from ..utils.time import utcnow

STOP_WORDS = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by", "from", "up",
    "about", "into", "through", "after", "is", "are", "was", "were", "been", "be", "have", "has", "had", "do",
    "does", "did", "will", "would", "should", "could", "may", "might", "meeting", "call", "discussion",
    "talk", "chat",
}

DURATION_BUCKETS = (
    ("0-15 min", 15),
    ("15-30 min", 30),
    ("30-45 min", 45),
    ("45-60 min", 60),
    ("60+ min", None),
)


def _when(m):
    return m.recorded_at or m.created_at


def _pct(part, whole):
    return int(round(part / whole * 100)) if whole else 0


def participant_stats(meetings, limit=10):
    stats = {}
    for m in meetings:
        for name in m.participants or []:
            s = stats.setdefault(name, {"name": name, "count": 0, "totalDuration": 0, "lastMeeting": None})
            s["count"] += 1
            s["totalDuration"] += m.duration or 0
            when = _when(m)
            if when and (s["lastMeeting"] is None or when > s["lastMeeting"]):
                s["lastMeeting"] = when
    out = sorted(stats.values(), key=lambda s: s["count"], reverse=True)[:limit]
    for s in out:
        s["lastMeeting"] = s["lastMeeting"].isoformat() + "Z" if s["lastMeeting"] else None
    return out


def daily_frequency(meetings, now, days=30):
    today = now.date()
    buckets = {}
    for i in range(days - 1, -1, -1):
        d = (today - timedelta(days=i)).isoformat()
        buckets[d] = {"date": d, "count": 0, "duration": 0}
    for m in meetings:
        when = _when(m)
        if when:
            b = buckets.get(when.date().isoformat())
            if b:
                b["count"] += 1
                b["duration"] += m.duration or 0
    return list(buckets.values())


def topic_cloud(meetings, limit=20):
    counts = {}

    def add(text, weight):
        for word in re.sub(r"[^a-z\s]", " ", (text or "").lower()).split():
            if len(word) > 3 and word not in STOP_WORDS:
                counts[word] = counts.get(word, 0) + weight

    for m in meetings:
        add(m.title, 2)
        add(m.description, 1)
    if not counts:
        return []
    top = max(counts.values())
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [{"topic": t, "count": c, "weight": c / top} for t, c in ranked]


def action_item_stats(meetings, now):
    stats = {
        "total": 0, "completed": 0, "pending": 0, "overdue": 0, "completionRate": 0,
        "byPriority": {p: {"total": 0, "completed": 0} for p in ("high", "medium", "low")},
    }
    for m in meetings:
        for item in m.action_items or []:
            stats["total"] += 1
            done = bool(item.get("completed"))
            if done:
                stats["completed"] += 1
            else:
                stats["pending"] += 1
                due = item.get("due_date")
                if due:
                    try:
                        if datetime.fromisoformat(str(due).replace("Z", "")[:19]) < now:
                            stats["overdue"] += 1
                    except ValueError:
                        pass
            prio = stats["byPriority"].get(item.get("priority") or "low", stats["byPriority"]["low"])
            prio["total"] += 1
            if done:
                prio["completed"] += 1
    stats["completionRate"] = _pct(stats["completed"], stats["total"])
    return stats


def hourly_distribution(meetings):
    hours = [0] * 24
    for m in meetings:
        when = _when(m)
        if when:
            hours[when.hour] += 1
    total = sum(hours)
    return [{"hour": h, "count": c, "percentage": _pct(c, total)} for h, c in enumerate(hours)]


def duration_buckets(meetings):
    counts = {label: 0 for label, _ in DURATION_BUCKETS}
    total = 0
    for m in meetings:
        if not m.duration:
            continue
        total += 1
        minutes = m.duration / 60
        for label, upper in DURATION_BUCKETS:
            if upper is None or minutes <= upper:
                counts[label] += 1
                break
    return [{"range": label, "count": c, "percentage": _pct(c, total)} for label, c in counts.items()]


def calculate_analytics(meetings, now=None):
    now = now or utcnow()
    week_start = (now - timedelta(days=now.weekday())).replace(hour=0, minute=0, second=0, microsecond=0)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last_month_start = (month_start - timedelta(days=1)).replace(day=1)

    total = len(meetings)
    total_duration = sum(m.duration or 0 for m in meetings)
    this_week = sum(1 for m in meetings if _when(m) and _when(m) >= week_start)
    this_month = sum(1 for m in meetings if _when(m) and _when(m) >= month_start)
    last_month = sum(1 for m in meetings if _when(m) and last_month_start <= _when(m) < month_start)

    if last_month:
        growth = int(round((this_month - last_month) / last_month * 100))
    else:
        growth = 100 if this_month else 0

    return {
        "totalMeetings": total,
        "totalDuration": total_duration,
        "averageDuration": int(round(total_duration / total)) if total else 0,
        "meetingsThisWeek": this_week,
        "meetingsThisMonth": this_month,
        "growthRate": growth,
        "mostFrequentParticipants": participant_stats(meetings),
        "meetingFrequency": daily_frequency(meetings, now),
        "topicCloud": topic_cloud(meetings),
        "actionItemStats": action_item_stats(meetings, now),
        "peakMeetingTimes": hourly_distribution(meetings),
        "averageMeetingLength": duration_buckets(meetings),
    }

from datetime import datetime
from types import SimpleNamespace

from meetingai.services.analytics import calculate_analytics

NOW = datetime(2024, 5, 15, 12, 0)


def meeting(when, duration=None, participants=(), title="", description=None, action_items=None):
    return SimpleNamespace(recorded_at=when, created_at=when, duration=duration, participants=list(participants),
                           title=title, description=description, action_items=action_items)


MEETINGS = [
    meeting(datetime(2024, 5, 14, 9, 0), 600, ["Dana", "Lee"], "Roadmap planning",
            action_items=[{"task": "Draft", "priority": "high", "completed": True},
                          {"task": "Review", "priority": "medium", "completed": False, "due_date": "2024-05-01"}]),
    meeting(datetime(2024, 5, 2, 14, 30), 2400, ["Dana"], "Roadmap budget review"),
    meeting(datetime(2024, 4, 20, 9, 15), 4000, ["Sam"], "Hiring sync"),
]


def test_totals_and_growth():
    stats = calculate_analytics(MEETINGS, now=NOW)
    assert stats["totalMeetings"] == 3
    assert stats["totalDuration"] == 7000
    assert stats["averageDuration"] == 2333
    assert stats["meetingsThisWeek"] == 1
    assert stats["meetingsThisMonth"] == 2
    assert stats["growthRate"] == 100


def test_breakdowns():
    stats = calculate_analytics(MEETINGS, now=NOW)
    assert stats["mostFrequentParticipants"][0]["name"] == "Dana"
    assert stats["mostFrequentParticipants"][0]["count"] == 2
    assert stats["mostFrequentParticipants"][0]["lastMeeting"] == "2024-05-14T09:00:00Z"

    assert len(stats["meetingFrequency"]) == 30
    assert stats["meetingFrequency"][-1]["date"] == "2024-05-15"
    assert {"date": "2024-05-14", "count": 1, "duration": 600} in stats["meetingFrequency"]

    assert stats["topicCloud"][0]["topic"] == "roadmap"
    assert stats["topicCloud"][0]["weight"] == 1.0

    items = stats["actionItemStats"]
    assert (items["total"], items["completed"], items["overdue"], items["completionRate"]) == (2, 1, 1, 50)
    assert items["byPriority"]["high"] == {"total": 1, "completed": 1}

    assert stats["peakMeetingTimes"][9]["count"] == 2
    buckets = {b["range"]: b["count"] for b in stats["averageMeetingLength"]}
    assert buckets == {"0-15 min": 1, "15-30 min": 0, "30-45 min": 1, "45-60 min": 0, "60+ min": 1}


def test_empty():
    stats = calculate_analytics([], now=NOW)
    assert stats["totalMeetings"] == 0
    assert stats["averageDuration"] == 0
    assert stats["growthRate"] == 0
    assert stats["topicCloud"] == []


def test_endpoint(client, meeting):
    r = client.get("/analytics")
    assert r.status_code == 200
    assert r.get_json()["totalMeetings"] == 1

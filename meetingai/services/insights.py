# meetingai/services/insights.py
from .sentiment import NEUTRAL, score_label

# overlap (ms) past which a speaker change counts as an interruption
INTERRUPTION_OVERLAP_MS = 500


def _speaker(u):
    return f"Speaker {u.get('speaker')}"


def detect_interruptions(utterances):
    events = []
    for prev, cur in zip(utterances, utterances[1:]):
        overlap = float(prev.get("end", 0)) - float(cur.get("start", 0))
        if overlap > INTERRUPTION_OVERLAP_MS and cur.get("speaker") != prev.get("speaker"):
            text = cur.get("text", "")
            events.append({
                "interrupter": _speaker(cur),
                "interrupted": _speaker(prev),
                "timestamp": cur.get("start"),
                "duration": overlap,
                "context": text[:50] + ("..." if len(text) > 50 else ""),
            })
    return events


def speaker_metrics(utterances, interruptions=None):
    """
    utterances: [{speaker, start, end, text}] with times in milliseconds
    return: per-speaker list, most talkative first
    """
    by_spk = {}
    for u in utterances:
        start = float(u.get("start", 0))
        dur = max(0.0, float(u.get("end", start)) - start) / 1000.0
        d = by_spk.setdefault(_speaker(u), {
            "speaker": _speaker(u), "totalDuration": 0.0, "speakingPercentage": 0.0, "turnCount": 0,
            "averageTurnDuration": 0.0, "longestTurn": 0.0, "interruptions": 0, "wasInterrupted": 0,
        })
        d["totalDuration"] += dur
        d["turnCount"] += 1
        d["longestTurn"] = max(d["longestTurn"], dur)

    for ev in interruptions if interruptions is not None else detect_interruptions(utterances):
        if ev["interrupter"] in by_spk:
            by_spk[ev["interrupter"]]["interruptions"] += 1
        if ev["interrupted"] in by_spk:
            by_spk[ev["interrupted"]]["wasInterrupted"] += 1

    total = sum(d["totalDuration"] for d in by_spk.values()) or 1.0
    for d in by_spk.values():
        d["speakingPercentage"] = d["totalDuration"] / total * 100
        d["averageTurnDuration"] = d["totalDuration"] / max(1, d["turnCount"])
    return sorted(by_spk.values(), key=lambda d: d["totalDuration"], reverse=True)


def analyze_sentiment(utterances, client=None):
    timeline, segments, by_speaker = [], [], {}
    for u in utterances:
        text = u.get("text", "")
        s = client.score(text) if client is not None else dict(NEUTRAL)
        spk = _speaker(u)
        segments.append({"text": text, "speaker": spk, "startTime": u.get("start"), "endTime": u.get("end"),
                         "sentiment": s})
        timeline.append({"timestamp": u.get("start"), "score": s["score"], "text": text[:100], "speaker": spk})
        agg = by_speaker.setdefault(spk, {"score": 0.0, "magnitude": 0.0, "count": 0})
        agg["score"] += s["score"]
        agg["magnitude"] += s["magnitude"]
        agg["count"] += 1

    for spk, agg in by_speaker.items():
        n = agg.pop("count")
        agg["score"] /= n
        agg["magnitude"] /= n
        agg["label"] = score_label(agg["score"])

    n = len(segments) or 1
    overall = sum(t["score"] for t in timeline) / n
    ranked = sorted(segments, key=lambda s: s["sentiment"]["score"], reverse=True)
    return {
        "overall": {"score": overall, "magnitude": sum(s["sentiment"]["magnitude"] for s in segments) / n,
                    "label": score_label(overall)},
        "timeline": timeline,
        "bySpeaker": by_speaker,
        "topPositiveSegments": ranked[:5],
        "topNegativeSegments": list(reversed(ranked[-5:])),
    }


def conversation_dynamics(metrics, interruptions, audio_duration):
    minutes = (audio_duration or 0) / 60.0
    durations = [m["totalDuration"] for m in metrics]
    return {
        "totalInterruptions": len(interruptions),
        "interruptionRate": len(interruptions) / minutes if minutes else 0.0,
        "averageTurnDuration": sum(m["averageTurnDuration"] for m in metrics) / len(metrics) if metrics else 0.0,
        "speakerBalance": min(durations) / max(durations) if durations and max(durations) else 0.0,
        "mostDominantSpeaker": metrics[0]["speaker"] if metrics else "Unknown",
        "leastActiveSpeaker": metrics[-1]["speaker"] if metrics else "Unknown",
        "interruptionEvents": interruptions,
    }


def key_moments(timeline):
    moments = []
    for i, point in enumerate(timeline):
        if i > 0:
            shift = abs(point["score"] - timeline[i - 1]["score"])
            if shift > 0.5:
                moments.append({
                    "type": "topic_shift", "timestamp": point["timestamp"],
                    "description": "Significant sentiment shift detected", "participants": [point["speaker"]],
                    "sentiment": {"score": point["score"], "magnitude": shift, "label": score_label(point["score"])},
                })
        if point["score"] < -0.5:
            moments.append({
                "type": "concern_raised", "timestamp": point["timestamp"],
                "description": "Negative sentiment detected", "participants": [point["speaker"]],
                "sentiment": {"score": point["score"], "magnitude": abs(point["score"]),
                              "label": score_label(point["score"])},
            })
    return sorted(moments, key=lambda m: m["timestamp"] or 0)


def engagement_score(metrics, sentiment, dynamics):
    balance = dynamics["speakerBalance"] * 30
    mood = (sentiment["overall"]["score"] + 1) / 2 * 30
    participation = min(len(metrics) / 5, 1) * 20
    interruption = max(0, 20 - dynamics["interruptionRate"] * 2)
    return int(round(balance + mood + participation + interruption))


def analyze_meeting(utterances, audio_duration=None, sentiment_client=None):
    if not utterances:
        raise ValueError("No utterances found in transcript")
    interruptions = detect_interruptions(utterances)
    metrics = speaker_metrics(utterances, interruptions)
    sentiment = analyze_sentiment(utterances, sentiment_client)
    dynamics = conversation_dynamics(metrics, interruptions, audio_duration)
    return {
        "speaker_metrics": metrics,
        "sentiment": sentiment,
        "dynamics": dynamics,
        "key_moments": key_moments(sentiment["timeline"]),
        "engagement_score": engagement_score(metrics, sentiment, dynamics),
    }

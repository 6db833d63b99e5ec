from datetime import datetime, timezone


def utcnow():
    """Naive UTC now; every DateTime column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(dt):
    if dt is None:
        return None
    return dt.isoformat() + "Z"

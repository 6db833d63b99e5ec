from functools import wraps
from flask import current_app, request
from flask_login import current_user

from ..errors import ApiError


def api_login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            raise ApiError("Unauthorized", 401, "AUTH_REQUIRED")
        return view(*args, **kwargs)
    return wrapped


def client_address():
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or request.remote_addr or "anonymous"


def user_key():
    if current_user.is_authenticated:
        return f"user:{current_user.id}"
    return client_address()


def share_token_key():
    """Key public traffic by the share token it presents."""
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    token = body.get("share_token") or request.args.get("share_token") or (request.view_args or {}).get("token")
    return f"share:{token}" if token else client_address()


def rate_limited(name, key_func=None):
    """Count the request against the named limiter; 429 once the window is full."""
    key_func = key_func or client_address

    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            limiter = current_app.extensions["rate_limiters"].get(name)
            if limiter is not None:
                key = key_func()
                if not limiter.check(key):
                    retry_after = limiter.retry_after(key)
                    current_app.logger.info('Rate limit %s exceeded for %s', name, key)
                    raise ApiError(
                        "Too many requests", 429, "RATE_LIMIT",
                        {"retryAfter": retry_after, "limit": limiter.max_requests, "window": limiter.window_seconds},
                        headers={"Retry-After": str(retry_after)},
                    )
            return view(*args, **kwargs)
        return wrapped
    return decorator

"""API error envelope.

Every failure leaves the API as ``{error, status, code, details?}``; successful
responses carry the resource itself.
"""
import json

from flask import jsonify, current_app
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    def __init__(self, message, status=500, code=None, details=None, headers=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details
        self.headers = headers or {}

    def to_dict(self):
        body = {"error": self.message, "status": self.status, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class ProviderError(Exception):
    """A third-party provider (speech, language model, mail) call failed."""


def api_error(message, status=500, code=None, details=None):
    resp = jsonify(ApiError(message, status, code, details).to_dict())
    resp.status_code = status
    return resp


def validation_details(exc: ValidationError):
    return json.loads(exc.json(include_url=False))


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def _api_error(exc):
        resp = jsonify(exc.to_dict())
        resp.status_code = exc.status
        for k, v in exc.headers.items():
            resp.headers[k] = v
        return resp

    @app.errorhandler(ValidationError)
    def _validation_error(exc):
        details = validation_details(exc)
        message = ", ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg')}" for e in details
        ) or "Invalid request data"
        return api_error(message, 400, "VALIDATION_ERROR", details)

    @app.errorhandler(HTTPException)
    def _http_error(exc):
        codes = {400: "BAD_REQUEST", 401: "AUTH_REQUIRED", 403: "FORBIDDEN", 404: "NOT_FOUND",
                 405: "METHOD_NOT_ALLOWED", 413: "PAYLOAD_TOO_LARGE"}
        return api_error(exc.description or exc.name, exc.code or 500, codes.get(exc.code, "HTTP_ERROR"))

    @app.errorhandler(Exception)
    def _unhandled(exc):
        current_app.logger.exception('Unhandled error: %s', exc)
        return api_error("Internal server error", 500, "INTERNAL_ERROR")

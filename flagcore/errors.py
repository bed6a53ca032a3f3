# flagcore/errors.py
import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

log = logging.getLogger(__name__)


class FlagError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.code, "message": self.message}


class ValidationError(FlagError):
    """Malformed or missing input."""
    status_code = 400
    code = "validation_error"


class NotFoundError(FlagError):
    """No matching non-deleted record."""
    status_code = 404
    code = "not_found"


class AlreadyExistsError(FlagError):
    """Key collision on create."""
    status_code = 400
    code = "already_exists"


class ConflictError(FlagError):
    """Uniqueness violation reported by the storage layer."""
    status_code = 409
    code = "conflict"


class InternalError(FlagError):
    """Fan-out or persistence anomaly; not retried."""
    status_code = 500
    code = "internal_error"


def register_error_handlers(app):
    @app.errorhandler(FlagError)
    def _flag_error(e):
        if e.status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.path, e.message, exc_info=e)
        else:
            log.warning("%s %s rejected (%s): %s", request.method, request.path, e.code, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(400)
    def _bad_request(e):
        msg = getattr(e, "description", "Bad Request")
        return jsonify(error="bad_request", message=msg), 400

    @app.errorhandler(401)
    def _unauthorized(e):
        return jsonify(error="unauthorized"), 401

    @app.errorhandler(403)
    def _forbidden(e):
        return jsonify(error="forbidden"), 403

    @app.errorhandler(404)
    def _not_found(e):
        return jsonify(error="not_found", path=request.path), 404

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return jsonify(error="method_not_allowed"), 405

    @app.errorhandler(Exception)
    def _server_error(e):
        if isinstance(e, HTTPException):
            return jsonify(error=e.name.lower().replace(" ", "_")), e.code
        log.exception("Unhandled exception: %s", e)
        return jsonify(error="server_error"), 500

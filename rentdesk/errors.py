# rentdesk/errors.py
from flask import jsonify


class RentDeskError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    error = "server_error"

    def __init__(self, message=None):
        super().__init__(message or self.error)
        self.message = message or self.error

    def to_dict(self):
        return {"error": self.error, "message": self.message}


class ValidationError(RentDeskError):
    status_code = 400
    error = "validation_error"


class NotFoundError(RentDeskError):
    status_code = 404
    error = "not_found"


class InvalidTransitionError(RentDeskError):
    status_code = 409
    error = "invalid_transition"


class ConflictError(RentDeskError):
    status_code = 409
    error = "conflict"


class PersistenceError(RentDeskError):
    """Database failure: connectivity loss or anything the driver rejected."""

    status_code = 503
    error = "persistence_error"


class ConstraintViolation(PersistenceError):
    status_code = 409
    error = "constraint_violation"


def register_error_handlers(app):
    @app.errorhandler(RentDeskError)
    def rentdesk_error(e):
        if isinstance(e, PersistenceError):
            app.logger.error("Persistence failure: %s", e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(400)
    def bad_request(e):
        msg = getattr(e, "description", "Bad Request")
        return jsonify(error="bad_request", message=msg), 400

    @app.errorhandler(401)
    def unauthorized(e): return jsonify(error="unauthorized"), 401

    @app.errorhandler(404)
    def not_found(e): return jsonify(error="not_found"), 404

    @app.errorhandler(500)
    def server_error(e):
        app.logger.exception("Unhandled exception: %s", e)
        return jsonify(error="server_error"), 500

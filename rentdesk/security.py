# rentdesk/security.py
from functools import wraps

from flask import g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from .errors import NotFoundError
from .extensions import db
from .models import PropertyManager


def manager_required(fn):
    """Resolve the JWT subject to a PropertyManager and expose it as ``g.manager``."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        identity = str(get_jwt_identity())
        manager = db.session.query(PropertyManager).filter_by(user_id=identity).first()
        if manager is None:
            raise NotFoundError("No property manager account for this user")
        g.manager = manager
        return fn(*args, **kwargs)
    return wrapper

"""API blueprint registration."""
from flask import Blueprint

api_bp = Blueprint("api", __name__)

# Import endpoints to ensure they are registered with the blueprint.
from . import auth  # noqa: E402,F401
from .bookings import bookings_bp  # noqa: E402,F401
from .therapists import therapists_bp  # noqa: E402,F401

api_bp.register_blueprint(therapists_bp, url_prefix="/therapists")
api_bp.register_blueprint(bookings_bp, url_prefix="/bookings")

from flask import Blueprint

# no url_prefix here, it is set in app.register_blueprint(..., url_prefix="/api/v1")
api_bp = Blueprint("aggregates_api", __name__)

from . import routes  # noqa: E402,F401

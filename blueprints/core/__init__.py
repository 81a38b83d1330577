from flask import Blueprint

bp = Blueprint("core", __name__)
# routes must be imported so they register on bp
from . import routes  # noqa: E402,F401

"""
Classes module: professors create classes, students enroll in them.
"""
from flask import Blueprint

classes_bp = Blueprint('classes', __name__, url_prefix='/api/classes')

from quizlive.classes import routes  # noqa: E402,F401

"""
Quiz module for creating quizzes, running them live and collecting submissions.

Professors create quizzes inside their classes and switch them live;
students take quizzes with automatic grading.
"""
from flask import Blueprint

quiz_bp = Blueprint('quiz', __name__, url_prefix='/api/quizzes')
submissions_bp = Blueprint('submissions', __name__, url_prefix='/api/submissions')

from quizlive.quiz import quiz_routes  # noqa: E402,F401
from quizlive.quiz import submission_routes  # noqa: E402,F401

"""
Submission routes for students taking a quiz.

Every saved answer and every completed submission pushes a
``quizResultsUpdated`` event to the quiz room so the professor's
dashboard refreshes without polling.
"""
from datetime import datetime

from flask import current_app, jsonify, request
from flask_login import current_user

from quizlive import db
from quizlive.common.decorators import student_required
from quizlive.quiz import submissions_bp
from quizlive.quiz.models import Quiz, Submission
from quizlive.quiz.services import QuizServiceError, SubmissionService
from quizlive.realtime import RelayNotInitializedError, current_relay


def _required_int(data: dict, key: str) -> int:
    value = data.get(key)
    if value is None or isinstance(value, bool):
        raise QuizServiceError(f"{key} is required", 400)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise QuizServiceError(f"{key} must be an integer", 400)


def _notify_results_updated(quiz_id: int, submission: Submission, completed: bool = False):
    payload = {
        'quizId': quiz_id,
        'studentId': submission.student_id,
        'submissionId': submission.id,
        'completed': completed,
        'timestamp': datetime.utcnow().isoformat(),
    }
    try:
        current_relay().broadcast_to_quiz(quiz_id, 'quizResultsUpdated', payload)
    except RelayNotInitializedError:
        current_app.logger.warning(f"Live relay unavailable; quizResultsUpdated for quiz {quiz_id} not sent")


@submissions_bp.route('/start', methods=['POST'])
@student_required
def start_quiz():
    """
    Start or resume a quiz.

    Request body:
    {
        "quizId": 1
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        quiz_id = _required_int(data, 'quizId')
        submission, created = SubmissionService.start(quiz_id, current_user.id)
        quiz = submission.quiz

        answers = {a.question_id: a.selected_option_id for a in submission.answers.all()}
        return jsonify({
            'success': True,
            'message': 'Quiz started' if created else 'Quiz resumed',
            'submission': submission.to_dict(),
            'quiz': quiz.to_dict(include_questions=True),
            'answers': answers,
            'time_remaining_minutes': SubmissionService.time_remaining(submission),
        }), 201 if created else 200

    except QuizServiceError as e:
        return jsonify({'success': False, 'error': e.message}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Error starting quiz")
        return jsonify({'success': False, 'error': str(e)}), 500


@submissions_bp.route('/answer', methods=['POST'])
@student_required
def save_answer():
    """
    Save the selected option for one question.

    Request body:
    {
        "submissionId": 1,
        "questionId": 3,
        "selectedOptionId": 9
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        answer, created = SubmissionService.save_answer(
            _required_int(data, 'submissionId'),
            current_user.id,
            _required_int(data, 'questionId'),
            _required_int(data, 'selectedOptionId'),
        )
        submission = answer.submission
        _notify_results_updated(submission.quiz_id, submission)

        return jsonify({
            'success': True,
            'message': 'Answer saved' if created else 'Answer updated',
            'answer': {
                'question_id': answer.question_id,
                'selected_option_id': answer.selected_option_id,
                'answered_at': answer.answered_at.isoformat(),
            },
        }), 200

    except QuizServiceError as e:
        return jsonify({'success': False, 'error': e.message}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Error saving answer")
        return jsonify({'success': False, 'error': str(e)}), 500


@submissions_bp.route('/complete', methods=['POST'])
@student_required
def complete_quiz():
    """
    Submit the quiz for grading.

    Request body:
    {
        "submissionId": 1
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        submission = SubmissionService.complete(_required_int(data, 'submissionId'), current_user.id)
        quiz = submission.quiz
        _notify_results_updated(quiz.id, submission, completed=True)

        response = {
            'success': True,
            'message': 'Quiz submitted successfully',
            'submission': submission.to_dict(),
        }
        if quiz.show_results_after_submission:
            response['results'] = SubmissionService.details(submission)
        return jsonify(response), 200

    except QuizServiceError as e:
        return jsonify({'success': False, 'error': e.message}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Error completing quiz")
        return jsonify({'success': False, 'error': str(e)}), 500


@submissions_bp.route('/mine', methods=['GET'])
@student_required
def my_submissions():
    """List the current student's submissions, newest first."""
    submissions = Submission.query.filter_by(student_id=current_user.id) \
        .order_by(Submission.started_at.desc()).all()
    rows = []
    for submission in submissions:
        row = submission.to_dict()
        row['quiz_title'] = submission.quiz.title
        row['class_name'] = submission.quiz.school_class.name
        rows.append(row)
    return jsonify({'success': True, 'submissions': rows}), 200


@submissions_bp.route('/quiz/<int:quiz_id>/status', methods=['GET'])
@student_required
def quiz_status(quiz_id):
    """Whether the student has started or finished a quiz."""
    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None:
        return jsonify({'success': False, 'error': 'Quiz not found'}), 404

    submission = Submission.query.filter_by(quiz_id=quiz_id, student_id=current_user.id).first()
    if submission is None:
        return jsonify({
            'success': True,
            'status': 'not_started',
            'is_live_active': quiz.is_live_active,
            'submission': None,
        }), 200

    status = 'completed' if submission.is_completed else 'in_progress'
    response = {
        'success': True,
        'status': status,
        'is_live_active': quiz.is_live_active,
        'submission': submission.to_dict(),
    }
    if not submission.is_completed:
        response['time_remaining_minutes'] = SubmissionService.time_remaining(submission)
    return jsonify(response), 200


@submissions_bp.route('/quiz/<int:quiz_id>/poll-results', methods=['GET'])
@student_required
def poll_results(quiz_id):
    """Aggregated votes per option; visible once the student has completed the quiz."""
    completed = Submission.query.filter_by(
        quiz_id=quiz_id, student_id=current_user.id, is_completed=True
    ).first()
    if completed is None:
        return jsonify({'success': False, 'error': 'Complete the quiz to see the results'}), 403

    try:
        questions = SubmissionService.poll_results(quiz_id)
    except QuizServiceError as e:
        return jsonify({'success': False, 'error': e.message}), e.status_code

    return jsonify({
        'success': True,
        'quiz_id': quiz_id,
        'total_responses': Submission.query.filter_by(quiz_id=quiz_id, is_completed=True).count(),
        'questions': questions,
    }), 200

"""
Quiz routes.

Professors can:
- Create quizzes for their classes and add questions
- Switch a quiz live (broadcast now, persist after a short delay)
- View quiz results

Students can:
- List quizzes of the classes they are enrolled in
- View a quiz without its answer key
"""
from flask import current_app, jsonify, request
from flask_login import current_user

from quizlive import db
from quizlive.classes.models import ClassEnrollment, SchoolClass, is_enrolled
from quizlive.common.decorators import api_login_required, professor_required
from quizlive.common.parsing import parse_bool
from quizlive.quiz import quiz_bp
from quizlive.quiz.models import AnswerOption, Question, Quiz, Submission
from quizlive.quiz.services import live_announcement, set_quiz_live_active
from quizlive.realtime import current_relay


def _owned_quiz_or_none(quiz_id: int):
    return Quiz.query.filter_by(id=quiz_id, professor_id=current_user.id).first()


def _not_owned():
    return jsonify({'success': False, 'error': 'Quiz not found or you do not have permission'}), 404


def _build_question(quiz: Quiz, data: dict, default_order: int) -> Question:
    """Validate one question payload and attach it (with options) to ``quiz``."""
    text = (data.get('question_text') or '').strip()
    if not text:
        raise ValueError('question_text is required')

    options = data.get('options') or []
    if len(options) < 2:
        raise ValueError('A question needs at least two options')
    if not any(parse_bool(o.get('is_correct')) for o in options):
        raise ValueError('A question needs at least one correct option')

    points = int(data.get('points', 1))
    if points < 0:
        raise ValueError('points must not be negative')

    question = Question(
        quiz=quiz,
        question_text=text,
        question_order=int(data.get('question_order', default_order)),
        points=points,
    )
    for index, opt in enumerate(options):
        option_text = (opt.get('option_text') or '').strip()
        if not option_text:
            raise ValueError('option_text is required for every option')
        question.options.append(AnswerOption(
            option_text=option_text,
            is_correct=bool(parse_bool(opt.get('is_correct'))),
            option_order=int(opt.get('option_order', index)),
        ))
    return question


@quiz_bp.route('/', methods=['GET'])
@api_login_required
def list_quizzes():
    """
    List quizzes.
    Professors see the quizzes they own, students those of their enrolled classes.
    """
    try:
        if current_user.is_professor():
            quizzes = Quiz.query.filter_by(professor_id=current_user.id) \
                .order_by(Quiz.created_at.desc()).all()
        else:
            class_ids = [
                e.class_id for e in ClassEnrollment.query.filter_by(
                    student_id=current_user.id, is_active=True
                ).all()
            ]
            quizzes = Quiz.query.filter(Quiz.class_id.in_(class_ids)) \
                .order_by(Quiz.created_at.desc()).all() if class_ids else []

        return jsonify({'success': True, 'quizzes': [q.to_dict() for q in quizzes]}), 200

    except Exception as e:
        current_app.logger.exception("Error listing quizzes")
        return jsonify({'success': False, 'error': str(e)}), 500


@quiz_bp.route('/', methods=['POST'])
@professor_required
def create_quiz():
    """
    Create a new quiz in one of the professor's classes.

    Request body:
    {
        "class_id": 1,
        "title": "Quiz Title",
        "description": "Optional description",
        "time_limit_minutes": 30,  // Optional, default 30
        "show_results_after_submission": true,  // Optional
        "questions": [  // Optional
            {"question_text": "...", "points": 1,
             "options": [{"option_text": "A", "is_correct": true}, ...]}
        ]
    }
    """
    data = request.get_json(silent=True) or {}

    title = (data.get('title') or '').strip()
    if not title:
        return jsonify({'success': False, 'error': 'Quiz title is required'}), 400

    class_id = data.get('class_id')
    school_class = SchoolClass.query.filter_by(id=class_id, professor_id=current_user.id).first() \
        if class_id is not None else None
    if not school_class:
        return jsonify({'success': False, 'error': 'Class not found or you do not have permission'}), 404

    try:
        show_results = parse_bool(data.get('show_results_after_submission', True))
        quiz = Quiz(
            class_id=school_class.id,
            professor_id=current_user.id,
            title=title,
            description=(data.get('description') or '').strip() or None,
            time_limit_minutes=int(data.get('time_limit_minutes') or 30),
            show_results_after_submission=True if show_results is None else show_results,
            is_live_active=False,
        )
        db.session.add(quiz)
        for index, question_data in enumerate(data.get('questions') or []):
            db.session.add(_build_question(quiz, question_data, index))
        db.session.commit()

        current_app.logger.info(f"Professor {current_user.id} created quiz {quiz.id} in class {school_class.id}")
        return jsonify({
            'success': True,
            'message': 'Quiz created successfully',
            'quiz': quiz.to_dict(include_questions=True, include_answers=True),
        }), 201

    except (ValueError, TypeError, AttributeError) as e:
        db.session.rollback()
        return jsonify({'success': False, 'error': f'Invalid quiz data: {str(e)}'}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Error creating quiz")
        return jsonify({'success': False, 'error': str(e)}), 500


@quiz_bp.route('/<int:quiz_id>', methods=['GET'])
@api_login_required
def get_quiz(quiz_id):
    """Get quiz details. The answer key is only included for the owning professor."""
    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None:
        return jsonify({'success': False, 'error': 'Quiz not found'}), 404

    if current_user.is_professor():
        if quiz.professor_id != current_user.id:
            return _not_owned()
        return jsonify({'success': True, 'quiz': quiz.to_dict(include_questions=True, include_answers=True)}), 200

    if not is_enrolled(current_user.id, quiz.class_id):
        return jsonify({'success': False, 'error': 'You are not enrolled in the class for this quiz'}), 403
    return jsonify({'success': True, 'quiz': quiz.to_dict(include_questions=True)}), 200


@quiz_bp.route('/<int:quiz_id>/questions', methods=['POST'])
@professor_required
def add_question(quiz_id):
    """Add a question to a quiz."""
    quiz = _owned_quiz_or_none(quiz_id)
    if not quiz:
        return _not_owned()

    data = request.get_json(silent=True) or {}
    try:
        question = _build_question(quiz, data, quiz.get_question_count())
        db.session.add(question)
        db.session.commit()
        return jsonify({'success': True, 'question': question.to_dict(include_answers=True)}), 201

    except (ValueError, TypeError, AttributeError) as e:
        db.session.rollback()
        return jsonify({'success': False, 'error': f'Invalid question data: {str(e)}'}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Error adding question")
        return jsonify({'success': False, 'error': str(e)}), 500


@quiz_bp.route('/<int:quiz_id>/live-toggle', methods=['PATCH'])
@professor_required
def live_toggle(quiz_id):
    """
    Switch a quiz live or off.

    The new state is broadcast to the quiz room immediately and written to
    the database after the configured confirmation delay.

    Request body:
    {
        "isLiveActive": true  // Optional, defaults to the opposite of the current state
    }
    """
    quiz = _owned_quiz_or_none(quiz_id)
    if not quiz:
        return _not_owned()

    relay = current_relay()
    data = request.get_json(silent=True) or {}
    if 'isLiveActive' in data:
        desired = parse_bool(data.get('isLiveActive'))
        if desired is None:
            return jsonify({'success': False, 'error': 'isLiveActive must be a boolean'}), 400
    else:
        snapshot = relay.live_state(quiz.id)
        current = snapshot.desired if snapshot.is_pending else quiz.is_live_active
        desired = not current

    snapshot = relay.toggle_live(
        quiz.id,
        desired,
        live_announcement(quiz, professor_name=current_user.full_name or current_user.email),
        stored=quiz.is_live_active,
    )
    current_app.logger.info(f"Quiz {quiz.id} live toggle to {desired} by professor {current_user.id}")

    return jsonify({
        'success': True,
        'message': f"Quiz {'activated' if desired else 'deactivated'} live; database confirmation pending",
        'quiz': {
            'id': quiz.id,
            'title': quiz.title,
            'class_id': quiz.class_id,
            'is_live_active': desired,
        },
        'live_state': snapshot.to_dict(),
        'confirm_delay_ms': current_app.config['LIVE_CONFIRM_DELAY_MS'],
    }), 202


@quiz_bp.route('/<int:quiz_id>/confirm-toggle', methods=['PATCH'])
@professor_required
def confirm_toggle(quiz_id):
    """Write the live flag to the database right away."""
    quiz = _owned_quiz_or_none(quiz_id)
    if not quiz:
        return _not_owned()

    data = request.get_json(silent=True) or {}
    desired = parse_bool(data.get('isLiveActive'))
    if desired is None:
        return jsonify({'success': False, 'error': 'isLiveActive must be a boolean'}), 400

    previous = quiz.is_live_active
    try:
        set_quiz_live_active(quiz.id, desired)
    except Exception as e:
        current_app.logger.exception(f"Failed to confirm live state of quiz {quiz.id}")
        return jsonify({'success': False, 'error': str(e)}), 500

    current_app.logger.info(f"Quiz {quiz.id} live state confirmed: {previous} -> {desired}")
    return jsonify({
        'success': True,
        'message': f"Quiz {'activation' if desired else 'deactivation'} confirmed in database",
        'quiz': {'id': quiz.id, 'is_live_active': desired},
    }), 200


@quiz_bp.route('/<int:quiz_id>/toggle-live-active', methods=['PATCH'])
@professor_required
def toggle_live_active(quiz_id):
    """
    Write the live flag immediately and notify every enrolled student
    through their personal room.
    """
    quiz = _owned_quiz_or_none(quiz_id)
    if not quiz:
        return _not_owned()

    data = request.get_json(silent=True) or {}
    if 'isLiveActive' in data:
        desired = parse_bool(data.get('isLiveActive'))
        if desired is None:
            return jsonify({'success': False, 'error': 'isLiveActive must be a boolean'}), 400
    else:
        desired = not quiz.is_live_active

    try:
        set_quiz_live_active(quiz.id, desired)
    except Exception as e:
        current_app.logger.exception(f"Failed to toggle live state of quiz {quiz.id}")
        return jsonify({'success': False, 'error': str(e)}), 500

    relay = current_relay()
    payload = {
        'quizId': quiz.id,
        'isLiveActive': desired,
        'quiz': {
            'id': quiz.id,
            'title': quiz.title,
            'class_name': quiz.school_class.name,
            'class_code': quiz.school_class.class_code,
        },
    }
    student_ids = quiz.school_class.active_student_ids()
    for student_id in student_ids:
        relay.notify_user(student_id, 'quizStatusChanged', payload)

    current_app.logger.info(
        f"Quiz {quiz.id} status changed to {'ACTIVE' if desired else 'INACTIVE'} - "
        f"notified {len(student_ids)} students"
    )
    return jsonify({
        'success': True,
        'message': f"Quiz {'activated' if desired else 'deactivated'} successfully",
        'quiz': {
            'id': quiz.id,
            'title': quiz.title,
            'is_live_active': desired,
            'class_name': quiz.school_class.name,
        },
    }), 200


@quiz_bp.route('/<int:quiz_id>/live-state', methods=['GET'])
@professor_required
def live_state(quiz_id):
    """Compare the broadcast state of a quiz with what the database holds."""
    quiz = _owned_quiz_or_none(quiz_id)
    if not quiz:
        return _not_owned()

    snapshot = current_relay().live_state(quiz.id)
    return jsonify({
        'success': True,
        'quiz_id': quiz.id,
        'persisted': quiz.is_live_active,
        'live_state': snapshot.to_dict(),
    }), 200


@quiz_bp.route('/<int:quiz_id>/results', methods=['GET'])
@professor_required
def quiz_results(quiz_id):
    """List completed submissions of a quiz with student names and scores."""
    quiz = _owned_quiz_or_none(quiz_id)
    if not quiz:
        return _not_owned()

    submissions = Submission.query.filter_by(quiz_id=quiz.id, is_completed=True) \
        .order_by(Submission.submitted_at.desc()).all()
    results = []
    for submission in submissions:
        row = submission.to_dict()
        row['student_name'] = submission.student.full_name
        row['student_email'] = submission.student.email
        results.append(row)

    scores = [r['percentage'] for r in results if r['percentage'] is not None]
    return jsonify({
        'success': True,
        'quiz': quiz.to_dict(),
        'submissions': results,
        'statistics': {
            'completed': len(results),
            'average_percentage': round(sum(scores) / len(scores), 2) if scores else None,
        },
    }), 200

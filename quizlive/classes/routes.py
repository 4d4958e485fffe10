"""
Class routes.

Professors can:
- Create classes and list the classes they teach
- Enroll students by email and list enrolled students

Students can:
- Join a class with its class code
- List the classes they are enrolled in
"""
from flask import current_app, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import IntegrityError

from quizlive import db
from quizlive.auth.models import User
from quizlive.classes import classes_bp
from quizlive.classes.models import ClassEnrollment, SchoolClass, generate_class_code
from quizlive.common.decorators import api_login_required, professor_required, student_required


@classes_bp.route('/', methods=['GET'])
@api_login_required
def list_classes():
    """List classes taught by (professor) or enrolled in (student) the current user."""
    try:
        if current_user.is_professor():
            classes = SchoolClass.query.filter_by(professor_id=current_user.id, is_active=True) \
                .order_by(SchoolClass.created_at.desc()).all()
        else:
            classes = SchoolClass.query.join(ClassEnrollment).filter(
                ClassEnrollment.student_id == current_user.id,
                ClassEnrollment.is_active.is_(True),
                SchoolClass.is_active.is_(True),
            ).order_by(SchoolClass.name).all()

        return jsonify({'success': True, 'classes': [c.to_dict() for c in classes]}), 200

    except Exception as e:
        current_app.logger.exception("Error listing classes")
        return jsonify({'success': False, 'error': str(e)}), 500


@classes_bp.route('/', methods=['POST'])
@professor_required
def create_class():
    """
    Create a new class.

    Request body:
    {
        "name": "Intro to Databases",
        "description": "Optional description"
    }
    """
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'success': False, 'error': 'Class name is required'}), 400

    try:
        code = generate_class_code()
        while SchoolClass.query.filter_by(class_code=code).first():
            code = generate_class_code()

        school_class = SchoolClass(
            name=name,
            description=(data.get('description') or '').strip() or None,
            class_code=code,
            professor_id=current_user.id,
        )
        db.session.add(school_class)
        db.session.commit()

        current_app.logger.info(f"Professor {current_user.id} created class {school_class.id} ({code})")
        return jsonify({'success': True, 'class': school_class.to_dict()}), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Error creating class")
        return jsonify({'success': False, 'error': str(e)}), 500


def _owned_class_or_none(class_id: int):
    return SchoolClass.query.filter_by(id=class_id, professor_id=current_user.id).first()


@classes_bp.route('/<int:class_id>/students', methods=['GET'])
@professor_required
def list_class_students(class_id):
    school_class = _owned_class_or_none(class_id)
    if not school_class:
        return jsonify({'success': False, 'error': 'Class not found or you do not have permission'}), 404

    students = [
        {
            'id': e.student.id,
            'email': e.student.email,
            'full_name': e.student.full_name,
            'enrolled_at': e.enrolled_at.isoformat() if e.enrolled_at else None,
        }
        for e in school_class.enrollments.filter_by(is_active=True).all()
    ]
    return jsonify({'success': True, 'class_id': class_id, 'students': students}), 200


@classes_bp.route('/<int:class_id>/students', methods=['POST'])
@professor_required
def enroll_student(class_id):
    """Enroll an existing student account (by email) in one of the professor's classes."""
    school_class = _owned_class_or_none(class_id)
    if not school_class:
        return jsonify({'success': False, 'error': 'Class not found or you do not have permission'}), 404

    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    if not email:
        return jsonify({'success': False, 'error': 'Student email is required'}), 400

    student = User.query.filter_by(email=email, role='student').first()
    if not student:
        return jsonify({'success': False, 'error': 'Student not found'}), 404

    return _enroll(school_class, student)


@classes_bp.route('/join', methods=['POST'])
@student_required
def join_class():
    """Join a class with its class code."""
    data = request.get_json(silent=True) or {}
    code = (data.get('class_code') or '').strip().upper()
    if not code:
        return jsonify({'success': False, 'error': 'class_code is required'}), 400

    school_class = SchoolClass.query.filter_by(class_code=code, is_active=True).first()
    if not school_class:
        return jsonify({'success': False, 'error': 'Class not found'}), 404

    return _enroll(school_class, current_user)


def _enroll(school_class: SchoolClass, student: User):
    try:
        enrollment = ClassEnrollment.query.filter_by(
            class_id=school_class.id,
            student_id=student.id
        ).first()
        if enrollment and enrollment.is_active:
            return jsonify({'success': False, 'error': 'Student is already enrolled'}), 409
        if enrollment:
            enrollment.is_active = True
        else:
            db.session.add(ClassEnrollment(class_id=school_class.id, student_id=student.id))
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'success': False, 'error': 'Student is already enrolled'}), 409

    current_app.logger.info(f"Student {student.id} enrolled in class {school_class.id}")
    return jsonify({
        'success': True,
        'message': 'Student enrolled successfully',
        'class': school_class.to_dict(),
    }), 201

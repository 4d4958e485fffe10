"""
Database models for classes and student enrollment.
"""
from datetime import datetime
import secrets
import string

from quizlive import db


def generate_class_code(length: int = 6) -> str:
    alphabet = string.ascii_uppercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


class SchoolClass(db.Model):
    """A class taught by one professor; quizzes belong to a class."""
    __tablename__ = "classes"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    class_code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    professor_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='CASCADE'), nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    professor = db.relationship("User", foreign_keys=[professor_id], backref="taught_classes")
    enrollments = db.relationship("ClassEnrollment", backref="school_class", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<SchoolClass {self.id}: {self.name}>"

    def active_student_ids(self) -> list[int]:
        return [e.student_id for e in self.enrollments.filter_by(is_active=True).all()]

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'class_code': self.class_code,
            'professor_id': self.professor_id,
            'professor_name': self.professor.full_name if self.professor else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class ClassEnrollment(db.Model):
    """Model for student enrollment in classes."""
    __tablename__ = "class_enrollments"

    id = db.Column(db.Integer, primary_key=True)
    class_id = db.Column(db.Integer, db.ForeignKey("classes.id", ondelete='CASCADE'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='CASCADE'), nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    enrolled_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    student = db.relationship("User", foreign_keys=[student_id], backref="class_enrollments")

    __table_args__ = (
        db.UniqueConstraint('class_id', 'student_id', name='uq_class_student'),
    )

    def __repr__(self) -> str:
        return f"<ClassEnrollment class={self.class_id} student={self.student_id}>"


def is_enrolled(student_id: int, class_id: int) -> bool:
    return ClassEnrollment.query.filter_by(
        class_id=class_id,
        student_id=student_id,
        is_active=True
    ).first() is not None

"""
Database models for quiz functionality.

Quizzes are multiple choice: every question has answer options and
one or more of them are marked correct. Quizzes double as live polls
while their ``is_live_active`` flag is set.
"""
from datetime import datetime

from quizlive import db


class Quiz(db.Model):
    """
    Model for quizzes within a class.

    ``is_live_active`` is the persisted half of the live toggle; the
    broadcast half lives only in connected clients.
    """
    __tablename__ = "quizzes"

    id = db.Column(db.Integer, primary_key=True)
    class_id = db.Column(db.Integer, db.ForeignKey("classes.id", ondelete='CASCADE'), nullable=False, index=True)
    professor_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='CASCADE'), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    time_limit_minutes = db.Column(db.Integer, nullable=False, default=30)
    show_results_after_submission = db.Column(db.Boolean, default=True, nullable=False)
    is_live_active = db.Column(db.Boolean, default=False, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    school_class = db.relationship("SchoolClass", backref=db.backref("quizzes", lazy="dynamic"))
    professor = db.relationship("User", foreign_keys=[professor_id])
    questions = db.relationship("Question", backref="quiz", lazy="dynamic", cascade="all, delete-orphan", order_by="Question.question_order")
    submissions = db.relationship("Submission", backref="quiz", lazy="dynamic", cascade="all, delete-orphan")

    __table_args__ = (
        db.Index('ix_quizzes_class_live', 'class_id', 'is_live_active'),
    )

    def __repr__(self) -> str:
        return f"<Quiz {self.id}: {self.title}>"

    def get_max_score(self) -> int:
        """Calculate total points for all questions."""
        return sum(q.points for q in self.questions)

    def get_question_count(self) -> int:
        return self.questions.count()

    def to_dict(self, include_questions: bool = False, include_answers: bool = False) -> dict:
        data = {
            'id': self.id,
            'class_id': self.class_id,
            'class_name': self.school_class.name if self.school_class else None,
            'professor_id': self.professor_id,
            'title': self.title,
            'description': self.description,
            'time_limit_minutes': self.time_limit_minutes,
            'show_results_after_submission': self.show_results_after_submission,
            'is_live_active': self.is_live_active,
            'question_count': self.get_question_count(),
            'max_score': self.get_max_score(),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_questions:
            data['questions'] = [q.to_dict(include_answers=include_answers) for q in self.questions.all()]
        return data


class Question(db.Model):
    """Model for quiz questions."""
    __tablename__ = "questions"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete='CASCADE'), nullable=False, index=True)
    question_text = db.Column(db.Text, nullable=False)
    question_order = db.Column(db.Integer, nullable=False, default=0)
    points = db.Column(db.Integer, nullable=False, default=1)

    options = db.relationship("AnswerOption", backref="question", lazy="dynamic", cascade="all, delete-orphan", order_by="AnswerOption.option_order")

    __table_args__ = (
        db.Index('ix_questions_quiz_order', 'quiz_id', 'question_order'),
    )

    def __repr__(self) -> str:
        return f"<Question {self.id} of quiz {self.quiz_id}>"

    def to_dict(self, include_answers: bool = False) -> dict:
        options = []
        for opt in self.options.all():
            option = {'id': opt.id, 'option_text': opt.option_text, 'option_order': opt.option_order}
            # Never leak the answer key to students taking the quiz
            if include_answers:
                option['is_correct'] = opt.is_correct
            options.append(option)
        return {
            'id': self.id,
            'question_text': self.question_text,
            'question_order': self.question_order,
            'points': self.points,
            'options': options,
        }


class AnswerOption(db.Model):
    """Model for the options of a question."""
    __tablename__ = "answer_options"

    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.Integer, db.ForeignKey("questions.id", ondelete='CASCADE'), nullable=False, index=True)
    option_text = db.Column(db.Text, nullable=False)
    is_correct = db.Column(db.Boolean, default=False, nullable=False)
    option_order = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<AnswerOption {self.id}: {self.option_text[:50]}>"


class Submission(db.Model):
    """
    A student's attempt at a quiz. Only one submission per student and quiz.
    """
    __tablename__ = "quiz_submissions"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete='CASCADE'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='CASCADE'), nullable=False, index=True)
    started_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    submitted_at = db.Column(db.DateTime, nullable=True)
    is_completed = db.Column(db.Boolean, default=False, nullable=False, index=True)
    time_taken_minutes = db.Column(db.Integer, nullable=True)
    total_score = db.Column(db.Integer, nullable=True)
    max_score = db.Column(db.Integer, nullable=True)

    student = db.relationship("User", foreign_keys=[student_id], backref="quiz_submissions")
    answers = db.relationship("StudentAnswer", backref="submission", lazy="dynamic", cascade="all, delete-orphan")

    __table_args__ = (
        db.UniqueConstraint('quiz_id', 'student_id', name='uq_submission_quiz_student'),
    )

    def __repr__(self) -> str:
        return f"<Submission {self.id}: Student {self.student_id}, Quiz {self.quiz_id}>"

    @property
    def percentage(self) -> int | None:
        if not self.max_score:
            return None if self.max_score is None else 0
        return round((self.total_score or 0) / self.max_score * 100)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'student_id': self.student_id,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'submitted_at': self.submitted_at.isoformat() if self.submitted_at else None,
            'is_completed': self.is_completed,
            'time_taken_minutes': self.time_taken_minutes,
            'score': self.total_score,
            'max_score': self.max_score,
            'percentage': self.percentage,
        }


class StudentAnswer(db.Model):
    """The option a student picked for one question of a submission."""
    __tablename__ = "student_answers"

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(db.Integer, db.ForeignKey("quiz_submissions.id", ondelete='CASCADE'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey("questions.id", ondelete='CASCADE'), nullable=False, index=True)
    selected_option_id = db.Column(db.Integer, db.ForeignKey("answer_options.id", ondelete='SET NULL'), nullable=True, index=True)
    is_correct = db.Column(db.Boolean, default=False, nullable=False)
    answered_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    question = db.relationship("Question")
    option = db.relationship("AnswerOption", foreign_keys=[selected_option_id])

    __table_args__ = (
        db.UniqueConstraint('submission_id', 'question_id', name='uq_submission_question'),
    )

    def __repr__(self) -> str:
        return f"<StudentAnswer {self.id}: Question {self.question_id}>"

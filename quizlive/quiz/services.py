"""Quiz services: live flag persistence and the submission write path."""
from datetime import datetime
from collections import OrderedDict

from flask import current_app

from quizlive import db
from quizlive.classes.models import is_enrolled
from quizlive.quiz.models import AnswerOption, Question, Quiz, StudentAnswer, Submission
from quizlive.realtime.payloads import LiveStatusEvent, now_ms


class QuizServiceError(Exception):
    """A request the services refuse; carries the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def set_quiz_live_active(quiz_id, is_live_active: bool) -> None:
    """
    Persist a quiz's live flag. Idempotent; raises LookupError if the quiz is gone.
    """
    quiz = db.session.get(Quiz, int(quiz_id))
    if quiz is None:
        raise LookupError(f"Quiz {quiz_id} not found")
    try:
        quiz.is_live_active = bool(is_live_active)
        quiz.updated_at = datetime.utcnow()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def live_announcement(quiz: Quiz, professor_name: str | None = None) -> LiveStatusEvent:
    """Build the payload broadcast with live_quiz_activate / live_quiz_deactivate."""
    if professor_name is None and quiz.professor is not None:
        professor_name = quiz.professor.full_name or quiz.professor.email
    return LiveStatusEvent(
        quiz_id=quiz.id,
        quiz_title=quiz.title,
        class_id=quiz.class_id,
        professor_name=professor_name,
        timestamp=now_ms(),
    )


class SubmissionService:
    """Service class for the student submission flow."""

    @staticmethod
    def start(quiz_id: int, student_id: int) -> tuple[Submission, bool]:
        """
        Start (or resume) the student's submission for a quiz.

        Returns:
            (submission, created)
        """
        quiz = db.session.get(Quiz, quiz_id)
        if quiz is None:
            raise QuizServiceError("Quiz not found", 404)
        if not is_enrolled(student_id, quiz.class_id):
            raise QuizServiceError("You are not enrolled in the class for this quiz", 403)

        submission = Submission.query.filter_by(quiz_id=quiz_id, student_id=student_id).first()
        if submission is not None:
            if submission.is_completed:
                raise QuizServiceError("You have already completed this quiz", 409)
            if SubmissionService._is_expired(submission):
                SubmissionService.complete(submission.id, student_id)
                raise QuizServiceError("Quiz time has expired", 403)
            return submission, False

        submission = Submission(quiz_id=quiz_id, student_id=student_id, started_at=datetime.utcnow())
        db.session.add(submission)
        db.session.commit()
        return submission, True

    @staticmethod
    def _open_submission(submission_id: int, student_id: int) -> Submission:
        submission = Submission.query.filter_by(id=submission_id, student_id=student_id).first()
        if submission is None:
            raise QuizServiceError("Submission not found", 404)
        if submission.is_completed:
            raise QuizServiceError("Quiz has already been completed", 403)
        return submission

    @staticmethod
    def _is_expired(submission: Submission) -> bool:
        limit = submission.quiz.time_limit_minutes
        if not limit:
            return False
        elapsed = (datetime.utcnow() - submission.started_at).total_seconds() / 60
        return elapsed >= limit

    @staticmethod
    def save_answer(submission_id: int, student_id: int, question_id: int,
                    selected_option_id: int) -> tuple[StudentAnswer, bool]:
        """
        Record (or change) the selected option for one question.

        Returns:
            (answer, created)
        """
        submission = SubmissionService._open_submission(submission_id, student_id)

        if SubmissionService._is_expired(submission):
            SubmissionService.complete(submission.id, student_id)
            raise QuizServiceError("Quiz time has expired", 403)

        question = Question.query.filter_by(id=question_id, quiz_id=submission.quiz_id).first()
        option = AnswerOption.query.filter_by(id=selected_option_id, question_id=question_id).first()
        if question is None or option is None:
            raise QuizServiceError("Invalid question or option", 400)

        answer = StudentAnswer.query.filter_by(submission_id=submission.id, question_id=question.id).first()
        created = answer is None
        if created:
            answer = StudentAnswer(submission_id=submission.id, question_id=question.id)
            db.session.add(answer)
        answer.selected_option_id = option.id
        answer.is_correct = bool(option.is_correct)
        answer.answered_at = datetime.utcnow()
        db.session.commit()
        return answer, created

    @staticmethod
    def complete(submission_id: int, student_id: int) -> Submission:
        """Grade and close a submission."""
        submission = SubmissionService._open_submission(submission_id, student_id)
        quiz = submission.quiz

        correct_question_ids = {
            a.question_id for a in submission.answers.filter_by(is_correct=True).all()
        }
        max_score = 0
        total_score = 0
        for question in quiz.questions.all():
            max_score += question.points
            if question.id in correct_question_ids:
                total_score += question.points

        now = datetime.utcnow()
        submission.is_completed = True
        submission.submitted_at = now
        submission.time_taken_minutes = int((now - submission.started_at).total_seconds() // 60)
        submission.total_score = total_score
        submission.max_score = max_score
        db.session.commit()

        current_app.logger.info(
            f"Submission {submission.id} completed: quiz={quiz.id} student={student_id} "
            f"score={total_score}/{max_score}"
        )
        return submission

    @staticmethod
    def time_remaining(submission: Submission) -> int:
        limit = submission.quiz.time_limit_minutes or 0
        elapsed = int((datetime.utcnow() - submission.started_at).total_seconds() // 60)
        return max(0, limit - elapsed)

    @staticmethod
    def details(submission: Submission) -> list[dict]:
        """Per-question breakdown shown after submission when the quiz allows it."""
        answers = {a.question_id: a for a in submission.answers.all()}
        results = []
        for question in submission.quiz.questions.all():
            answer = answers.get(question.id)
            correct = [o for o in question.options.all() if o.is_correct]
            results.append({
                'question_id': question.id,
                'question_text': question.question_text,
                'points': question.points,
                'selected_option_id': answer.selected_option_id if answer else None,
                'selected_option_text': answer.option.option_text if answer and answer.option else None,
                'is_correct': bool(answer and answer.is_correct),
                'correct_option_ids': [o.id for o in correct],
            })
        return results

    @staticmethod
    def poll_results(quiz_id: int) -> list[dict]:
        """Vote counts per option over completed submissions."""
        quiz = db.session.get(Quiz, quiz_id)
        if quiz is None:
            raise QuizServiceError("Quiz not found", 404)

        completed = Submission.query.filter_by(quiz_id=quiz_id, is_completed=True).count()
        votes = {}
        rows = db.session.query(StudentAnswer.selected_option_id, db.func.count(StudentAnswer.id)) \
            .join(Submission, StudentAnswer.submission_id == Submission.id) \
            .filter(Submission.quiz_id == quiz_id, Submission.is_completed.is_(True)) \
            .group_by(StudentAnswer.selected_option_id).all()
        for option_id, count in rows:
            votes[option_id] = count

        questions = OrderedDict()
        for question in quiz.questions.all():
            options = []
            for opt in question.options.all():
                count = votes.get(opt.id, 0)
                options.append({
                    'id': opt.id,
                    'text': opt.option_text,
                    'order': opt.option_order,
                    'voteCount': count,
                    'percentage': round(count / completed * 100, 2) if completed else 0,
                })
            questions[question.id] = {
                'id': question.id,
                'text': question.question_text,
                'order': question.question_order,
                'options': options,
            }
        return list(questions.values())

"""
Pytest configuration and fixtures for testing.
Each test gets a fresh application bound to a temporary SQLite database.
"""
import os
import time

import pytest

# Set test environment variables BEFORE creating the app
os.environ['FLASK_ENV'] = 'testing'
os.environ['SECRET_KEY'] = 'sfndsfojoriwew09rjfjndsknfkj'
os.environ['VALID_USER_TYPES'] = 'student,professor,admin'
os.environ['MIN_PASSWORD_LENGTH'] = '8'
os.environ['SOCKETIO_ASYNC_MODE'] = 'threading'
os.environ['SOCKETIO_MESSAGE_QUEUE'] = ''
os.environ['LOG_LEVEL'] = 'WARNING'

from quizlive import create_app, db, socketio
from quizlive.auth.models import User
from quizlive.auth.utils import hash_password
from quizlive.classes.models import ClassEnrollment, SchoolClass
from quizlive.quiz.models import AnswerOption, Question, Quiz
from quizlive.realtime import current_relay

PASSWORD = 'password123'
CONFIRM_DELAY_MS = 300


@pytest.fixture
def app(tmp_path):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'quizlive-test.db'}",
        'LIVE_CONFIRM_DELAY_MS': CONFIRM_DELAY_MS,
    })

    yield app

    with app.app_context():
        # Pending confirmations must not write into a torn-down database
        current_relay().shutdown()
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def make_client(app):
    """Factory for additional, independently logged-in HTTP clients."""
    def _make():
        return app.test_client()
    return _make


@pytest.fixture
def socket_client(app):
    """Factory for Socket.IO test clients sharing the session of an HTTP client."""
    created = []

    def _connect(http_client=None):
        sock = socketio.test_client(app, flask_test_client=http_client)
        created.append(sock)
        return sock

    yield _connect

    for sock in created:
        if sock.is_connected():
            sock.disconnect()


@pytest.fixture
def make_user(app):
    def _make(email, role='student', first_name='Test', last_name='User'):
        with app.app_context():
            user = User(
                email=email,
                password_hash=hash_password(PASSWORD),
                first_name=first_name,
                last_name=last_name,
                role=role,
            )
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make


@pytest.fixture
def classroom(app, make_user):
    """A professor, two enrolled students and one class."""
    professor_id = make_user('prof@test.com', role='professor', first_name='Ada', last_name='Lovelace')
    alice_id = make_user('alice@test.com', first_name='Alice')
    bob_id = make_user('bob@test.com', first_name='Bob')

    with app.app_context():
        school_class = SchoolClass(name='Databases', class_code='DB1234', professor_id=professor_id)
        db.session.add(school_class)
        db.session.commit()
        for student_id in (alice_id, bob_id):
            db.session.add(ClassEnrollment(class_id=school_class.id, student_id=student_id))
        db.session.commit()
        class_id = school_class.id

    return {
        'professor_id': professor_id,
        'alice_id': alice_id,
        'bob_id': bob_id,
        'class_id': class_id,
    }


@pytest.fixture
def quiz(app, classroom):
    """
    A two-question quiz in the classroom.
    Question 1 is worth 2 points, question 2 is worth 3 points.
    """
    with app.app_context():
        quiz = Quiz(
            class_id=classroom['class_id'],
            professor_id=classroom['professor_id'],
            title='Normal forms',
            time_limit_minutes=30,
        )
        db.session.add(quiz)
        ids = {'quiz_id': None, 'questions': []}
        for order, points in enumerate((2, 3)):
            question = Question(quiz=quiz, question_text=f'Question {order + 1}', question_order=order, points=points)
            correct = AnswerOption(option_text='Right', is_correct=True, option_order=0)
            wrong = AnswerOption(option_text='Wrong', is_correct=False, option_order=1)
            question.options.append(correct)
            question.options.append(wrong)
            db.session.add(question)
            db.session.flush()
            ids['questions'].append({
                'id': question.id,
                'correct_option_id': correct.id,
                'wrong_option_id': wrong.id,
            })
        db.session.commit()
        ids['quiz_id'] = quiz.id
    return ids


def login(client, email, password=PASSWORD):
    response = client.post('/api/auth/login', json={'email': email, 'password': password})
    assert response.status_code == 200, response.get_json()
    return response


def stored_live_flag(app, quiz_id):
    with app.app_context():
        return db.session.get(Quiz, quiz_id).is_live_active


def wait_for(predicate, timeout=5.0, interval=0.05):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()

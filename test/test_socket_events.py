"""
Test cases for the Socket.IO events through the Flask-SocketIO test client.
"""
from quizlive import db
from quizlive.quiz.models import StudentAnswer, Submission
from quizlive.realtime import current_relay

from conftest import login


def events(sock, name):
    return [packet['args'][0] for packet in sock.get_received() if packet['name'] == name]


def live_answer(student_id, option_id, quiz_id=7, question_id=3):
    return {
        'studentId': student_id,
        'studentName': f'Student {student_id}',
        'quizId': quiz_id,
        'questionId': question_id,
        'selectedOptionId': option_id,
        'optionText': 'B',
        'timestamp': 1700000000000,
    }


class TestLiveAnswerEvents:

    def test_professor_sees_answer_and_nothing_is_stored(self, app, socket_client):
        professor = socket_client()
        student = socket_client()
        professor.emit('join_quiz_room', 7)
        student.emit('join_quiz_room', 7)
        professor.get_received()
        student.get_received()

        student.emit('live_answer_update', live_answer(5, 9))

        received = events(professor, 'live_answer_update')
        assert received == [live_answer(5, 9)]
        assert events(student, 'live_answer_update') == []
        with app.app_context():
            assert db.session.query(StudentAnswer).count() == 0
            assert db.session.query(Submission).count() == 0

    def test_two_students_are_attributed_in_order(self, socket_client):
        professor = socket_client()
        alice = socket_client()
        bob = socket_client()
        for sock in (professor, alice, bob):
            sock.emit('join_quiz_room', 7)
        professor.get_received()

        alice.emit('live_answer_update', live_answer(1, 9))
        bob.emit('live_answer_update', live_answer(2, 10))

        received = [(p['studentId'], p['selectedOptionId']) for p in events(professor, 'live_answer_update')]
        assert received == [(1, 9), (2, 10)]

    def test_late_joiner_receives_no_backlog(self, socket_client):
        professor = socket_client()
        student = socket_client()
        professor.emit('join_quiz_room', 7)
        student.emit('live_answer_update', live_answer(5, 9))

        late = socket_client()
        late.emit('join_quiz_room', 7)

        assert events(late, 'live_answer_update') == []

    def test_disconnected_professor_is_removed_from_rooms(self, app, socket_client):
        professor = socket_client()
        professor.emit('join_quiz_room', 7)
        professor.emit('join_professor_room', 2)

        professor.disconnect()

        with app.app_context():
            relay = current_relay()
            assert relay.registry.room_size('quiz_7') == 0
            assert relay.registry.room_size('professor_2') == 0

    def test_malformed_answer_does_not_break_the_connection(self, socket_client):
        professor = socket_client()
        student = socket_client()
        professor.emit('join_quiz_room', 7)

        student.emit('live_answer_update', {'quizId': 7})
        student.emit('test_ping', {'message': 'still there?'})

        assert events(professor, 'live_answer_update') == []
        assert events(student, 'test_pong')[0]['originalMessage'] == 'still there?'


class TestRoomEvents:

    def test_join_class_room_acknowledges_with_room_size(self, socket_client):
        first = socket_client()
        second = socket_client()

        first.emit('join_class_room', 4)
        second.emit('join_class_room', 4)

        assert events(first, 'room_joined') == [{'classId': 4, 'roomSize': 1}]
        assert events(second, 'room_joined') == [{'classId': 4, 'roomSize': 2}]

    def test_class_status_change_reaches_sender_too(self, socket_client):
        professor = socket_client()
        student = socket_client()
        professor.emit('join_class_room', 4)
        student.emit('join_class_room', 4)
        professor.get_received()
        student.get_received()

        professor.emit('quiz_live_status_change', {
            'quizId': 7, 'quizTitle': 'Q', 'isLiveActive': True, 'classId': 4,
            'professorId': 2, 'professorName': 'Ada', 'timestamp': 1,
        })

        assert events(professor, 'quiz_live_status_change')[0]['quizId'] == 7
        assert events(student, 'quiz_live_status_change')[0]['isLiveActive'] is True

    def test_client_live_activate_is_relayed_to_quiz_room(self, socket_client):
        professor = socket_client()
        student = socket_client()
        student.emit('join_quiz_room', 7)

        professor.emit('live_quiz_activate', {'quizId': 7, 'quizTitle': 'Q', 'professorName': 'Ada'})

        assert events(student, 'live_quiz_activate')[0]['quizTitle'] == 'Q'

    def test_leave_quiz_room_stops_delivery(self, socket_client):
        professor = socket_client()
        student = socket_client()
        professor.emit('join_quiz_room', 7)
        professor.emit('leave_quiz_room', 7)

        student.emit('live_answer_update', live_answer(5, 9))

        assert events(professor, 'live_answer_update') == []

    def test_logged_in_user_joins_personal_room_on_connect(self, app, client, classroom, socket_client):
        login(client, 'alice@test.com')

        socket_client(client)

        with app.app_context():
            assert current_relay().registry.room_size(f"user_{classroom['alice_id']}") == 1

"""
Test cases for the live relay against an in-memory transport.
"""
import pytest

from quizlive.realtime import LiveRelay, RelayNotInitializedError
from quizlive.realtime.payloads import LiveStatusEvent


class FakeTransport:
    """Records every emit instead of sending it."""

    def __init__(self):
        self.sent = []
        self.persisted = []
        self.tasks = []

    def emit(self, event, payload, sid):
        self.sent.append((sid, event, payload))

    def persist(self, quiz_id, desired):
        self.persisted.append((quiz_id, desired))

    def spawn(self, fn, *args):
        self.tasks.append((fn, args))

    def sleep(self, seconds):
        pass

    def received(self, sid, event=None):
        return [payload for to, name, payload in self.sent if to == sid and (event is None or name == event)]


def answer(**overrides):
    payload = {
        'studentId': 5,
        'studentName': 'Ana',
        'quizId': 7,
        'questionId': 3,
        'selectedOptionId': 9,
        'optionText': 'B',
        'timestamp': 1000,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def relay(transport):
    return LiveRelay().bind(
        emit=transport.emit,
        persist=transport.persist,
        delay_seconds=1.0,
        spawn=transport.spawn,
        sleep=transport.sleep,
    )


class TestRelayInitialization:

    def test_unbound_relay_raises(self):
        relay = LiveRelay()
        with pytest.raises(RelayNotInitializedError):
            relay.on_join_quiz_room('s1', 7)
        with pytest.raises(RelayNotInitializedError):
            relay.toggle_live(7, True, LiveStatusEvent(quiz_id=7))

    def test_shutdown_relay_raises(self, relay):
        relay.shutdown()
        assert relay.is_bound is False
        with pytest.raises(RelayNotInitializedError):
            relay.fanout('x', {}, 'quiz_7')


class TestLiveAnswerRelay:

    def test_every_other_member_receives_one_copy(self, relay, transport):
        for sid in ('prof', 's1', 's2'):
            relay.on_join_quiz_room(sid, 7)

        delivered = relay.on_live_answer_update('s1', answer())

        assert delivered == 2
        assert transport.received('prof', 'live_answer_update') == [answer()]
        assert transport.received('s2', 'live_answer_update') == [answer()]
        assert transport.received('s1') == []

    def test_other_quiz_rooms_receive_nothing(self, relay, transport):
        relay.on_join_quiz_room('other', 8)
        relay.on_join_quiz_room('prof', 7)

        relay.on_live_answer_update('s1', answer())

        assert transport.received('other') == []

    def test_late_joiner_gets_no_backlog(self, relay, transport):
        relay.on_join_quiz_room('prof', 7)
        relay.on_live_answer_update('s1', answer())

        relay.on_join_quiz_room('late', 7)

        assert transport.received('late') == []

    def test_duplicate_join_does_not_duplicate_delivery(self, relay, transport):
        relay.on_join_quiz_room('prof', 7)
        relay.on_join_quiz_room('prof', '7')

        relay.on_live_answer_update('s1', answer())

        assert len(transport.received('prof', 'live_answer_update')) == 1

    def test_professor_room_and_quiz_room_deliver_once(self, relay, transport):
        relay.on_join_quiz_room('prof', 7)
        relay.on_join_professor_room('prof', 2)
        relay.on_join_professor_room('dashboard', 2)

        relay.on_live_answer_update('s1', answer(professorId=2))

        assert len(transport.received('prof', 'live_answer_update')) == 1
        assert len(transport.received('dashboard', 'live_answer_update')) == 1

    def test_malformed_payload_is_dropped(self, relay, transport):
        relay.on_join_quiz_room('prof', 7)

        assert relay.on_live_answer_update('s1', {'quizId': 7}) == 0
        assert relay.on_live_answer_update('s1', None) == 0
        assert transport.sent == []

    def test_disconnected_session_stops_receiving(self, relay, transport):
        relay.on_join_quiz_room('prof', 7)
        relay.on_join_user_room('prof', 2)

        left = relay.on_disconnect('prof')
        relay.on_live_answer_update('s1', answer())

        assert left == {'quiz_7', 'user_2'}
        assert transport.sent == []
        assert relay.registry.rooms_of('prof') == set()

    def test_leave_quiz_room(self, relay, transport):
        relay.on_join_quiz_room('prof', 7)
        assert relay.on_leave_quiz_room('prof', 7) is True

        relay.on_live_answer_update('s1', answer())
        assert transport.sent == []

    def test_relay_order_follows_processing_order(self, relay, transport):
        relay.on_join_quiz_room('prof', 7)

        relay.on_live_answer_update('s1', answer(studentId=1, selectedOptionId=9))
        relay.on_live_answer_update('s2', answer(studentId=2, selectedOptionId=10))

        seen = [(p['studentId'], p['selectedOptionId']) for p in transport.received('prof')]
        assert seen == [(1, 9), (2, 10)]

    def test_failed_delivery_does_not_stop_fanout(self, relay, transport):
        def flaky_emit(event, payload, sid):
            if sid == 'broken':
                raise ConnectionError('socket closed')
            transport.emit(event, payload, sid)

        relay._emit = flaky_emit
        relay.on_join_quiz_room('broken', 7)
        relay.on_join_quiz_room('prof', 7)

        assert relay.on_live_answer_update('s1', answer()) == 1
        assert len(transport.received('prof')) == 1


class TestStatusRelay:

    def test_live_status_reaches_whole_quiz_room(self, relay, transport):
        relay.on_join_quiz_room('s1', 7)
        relay.on_join_quiz_room('s2', 7)

        delivered = relay.on_live_status('s1', 'live_quiz_activate', {'quizId': 7, 'quizTitle': 'Q'})

        assert delivered == 2
        assert transport.received('s1', 'live_quiz_activate')[0]['quizTitle'] == 'Q'

    def test_unknown_live_status_event(self, relay, transport):
        relay.on_join_quiz_room('s1', 7)
        assert relay.on_live_status('s1', 'live_quiz_explode', {'quizId': 7}) == 0
        assert transport.sent == []

    def test_class_status_change_includes_sender(self, relay, transport):
        relay.on_join_class_room('prof', 4)
        relay.on_join_class_room('s1', 4)
        transport.sent.clear()

        delivered = relay.on_quiz_live_status_change('prof', {
            'quizId': 7, 'classId': 4, 'isLiveActive': True, 'professorName': 'Ada',
        })

        assert delivered == 2
        assert transport.received('prof', 'quiz_live_status_change')[0]['isLiveActive'] is True

    def test_class_room_join_is_acknowledged(self, relay, transport):
        relay.on_join_class_room('s1', 4)
        relay.on_join_class_room('s2', 4)

        assert transport.received('s1', 'room_joined') == [{'classId': 4, 'roomSize': 1}]
        assert transport.received('s2', 'room_joined') == [{'classId': 4, 'roomSize': 2}]

    def test_invalid_room_id_is_ignored(self, relay, transport):
        assert relay.on_join_class_room('s1', None) is None
        assert relay.registry.session_count() == 0
        assert transport.sent == []

    def test_ping_replies_to_sender_only(self, relay, transport):
        relay.on_join_quiz_room('other', 7)

        relay.on_test_ping('s1', {'message': 'hi'})

        pong = transport.received('s1', 'test_pong')
        assert pong[0]['originalMessage'] == 'hi'
        assert transport.received('other') == []


class TestRelayToggle:

    def test_toggle_broadcasts_to_quiz_room_and_defers_write(self, relay, transport):
        relay.on_join_quiz_room('s1', 7)

        snapshot = relay.toggle_live(7, True, LiveStatusEvent(quiz_id=7, quiz_title='Q'))

        assert snapshot.is_pending
        assert transport.received('s1', 'live_quiz_activate')[0]['quizId'] == 7
        assert transport.persisted == []
        assert len(transport.tasks) == 1

    def test_shutdown_drops_pending_confirmation(self, relay, transport):
        relay.toggle_live(7, True, LiveStatusEvent(quiz_id=7))

        dropped = relay.shutdown()
        fn, args = transport.tasks[0]
        fn(*args)

        assert dropped == ['7']
        assert transport.persisted == []

"""
Test cases for room membership.
"""
from quizlive.realtime.rooms import (
    RoomRegistry,
    room_for_class,
    room_for_professor,
    room_for_quiz,
    room_for_user,
)


class TestRoomNames:

    def test_room_names_use_kind_prefix(self):
        assert room_for_user(5) == 'user_5'
        assert room_for_quiz('7') == 'quiz_7'
        assert room_for_professor(3) == 'professor_3'
        assert room_for_class(' 12 ') == 'class_12'

    def test_numeric_and_string_ids_share_a_room(self):
        assert room_for_quiz(7) == room_for_quiz('7')


class TestRoomRegistry:

    def test_join_is_idempotent(self):
        registry = RoomRegistry()
        assert registry.join('s1', 'quiz_7') is True
        assert registry.join('s1', 'quiz_7') is False
        assert registry.room_size('quiz_7') == 1

    def test_room_exists_only_while_it_has_members(self):
        registry = RoomRegistry()
        registry.join('s1', 'quiz_7')
        assert 'quiz_7' in registry.room_names()

        assert registry.leave('s1', 'quiz_7') is True
        assert 'quiz_7' not in registry.room_names()
        assert registry.session_count() == 0

    def test_leave_unknown_membership(self):
        registry = RoomRegistry()
        assert registry.leave('s1', 'quiz_7') is False

    def test_leave_all_removes_session_everywhere(self):
        registry = RoomRegistry()
        registry.join('s1', 'quiz_7')
        registry.join('s1', 'user_2')
        registry.join('s2', 'quiz_7')

        left = registry.leave_all('s1')

        assert left == {'quiz_7', 'user_2'}
        assert registry.members('quiz_7') == ['s2']
        assert registry.room_size('user_2') == 0
        assert registry.rooms_of('s1') == set()

    def test_members_of_several_rooms_lists_each_session_once(self):
        registry = RoomRegistry()
        registry.join('prof', 'quiz_7')
        registry.join('s1', 'quiz_7')
        registry.join('prof', 'professor_3')

        assert registry.members('quiz_7', 'professor_3') == ['prof', 's1']

    def test_members_in_join_order(self):
        registry = RoomRegistry()
        for sid in ('c', 'a', 'b'):
            registry.join(sid, 'quiz_1')
        assert registry.members('quiz_1') == ['c', 'a', 'b']

    def test_clear(self):
        registry = RoomRegistry()
        registry.join('s1', 'quiz_7')
        registry.clear()
        assert registry.session_count() == 0
        assert registry.members('quiz_7') == []

"""
Realtime package: the live session relay.

- rooms: membership map of rooms to Socket.IO sessions
- relay: fan-out of client events, room joins, live toggles
- live_toggle: broadcast-then-confirm state machine for a quiz's live flag
- events: Socket.IO handler registration
"""
from quizlive.realtime.relay import LiveRelay, RelayNotInitializedError, current_relay
from quizlive.realtime.rooms import (
    RoomRegistry,
    room_for_class,
    room_for_professor,
    room_for_quiz,
    room_for_user,
)

__all__ = [
    'LiveRelay',
    'RelayNotInitializedError',
    'current_relay',
    'RoomRegistry',
    'room_for_class',
    'room_for_professor',
    'room_for_quiz',
    'room_for_user',
]

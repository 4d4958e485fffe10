"""Room membership for the live relay.

Rooms are plain names (``quiz_42``, ``user_7``...) mapped to the set of
Socket.IO session ids that joined them. A room exists while it has at least
one member; nothing needs to create or destroy it explicitly.
"""

from __future__ import annotations

import threading
from typing import Iterable


def _normalize_id(value) -> str:
    return str(value).strip()


def room_for_user(user_id) -> str:
    return f"user_{_normalize_id(user_id)}"


def room_for_quiz(quiz_id) -> str:
    return f"quiz_{_normalize_id(quiz_id)}"


def room_for_professor(professor_id) -> str:
    return f"professor_{_normalize_id(professor_id)}"


def room_for_class(class_id) -> str:
    return f"class_{_normalize_id(class_id)}"


class RoomRegistry:
    """Tracks which sessions are interested in which room."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        # room -> {sid: join sequence}; the sequence keeps fan-out order stable
        self._rooms: dict[str, dict[str, int]] = {}
        self._sessions: dict[str, set[str]] = {}
        self._sequence = 0

    def join(self, session_id: str, room: str) -> bool:
        """Add a session to a room. Returns False if it was already a member."""
        with self._lock:
            members = self._rooms.setdefault(room, {})
            if session_id in members:
                return False
            self._sequence += 1
            members[session_id] = self._sequence
            self._sessions.setdefault(session_id, set()).add(room)
            return True

    def leave(self, session_id: str, room: str) -> bool:
        with self._lock:
            members = self._rooms.get(room)
            if not members or session_id not in members:
                return False
            del members[session_id]
            if not members:
                del self._rooms[room]
            rooms = self._sessions.get(session_id)
            if rooms is not None:
                rooms.discard(room)
                if not rooms:
                    del self._sessions[session_id]
            return True

    def leave_all(self, session_id: str) -> set[str]:
        """Remove a session from every room it belongs to."""
        with self._lock:
            rooms = self._sessions.pop(session_id, set())
            for room in rooms:
                members = self._rooms.get(room)
                if members is None:
                    continue
                members.pop(session_id, None)
                if not members:
                    del self._rooms[room]
            return rooms

    def members(self, *rooms: str) -> list[str]:
        """Union of the members of ``rooms``, each session listed once."""
        with self._lock:
            seen: dict[str, int] = {}
            for room in rooms:
                for sid, seq in self._rooms.get(room, {}).items():
                    if sid not in seen or seq < seen[sid]:
                        seen[sid] = seq
            return sorted(seen, key=seen.__getitem__)

    def rooms_of(self, session_id: str) -> set[str]:
        with self._lock:
            return set(self._sessions.get(session_id, ()))

    def room_size(self, room: str) -> int:
        with self._lock:
            return len(self._rooms.get(room, ()))

    def room_names(self) -> Iterable[str]:
        with self._lock:
            return list(self._rooms)

    def session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def clear(self) -> None:
        with self._lock:
            self._rooms.clear()
            self._sessions.clear()

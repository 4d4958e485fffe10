"""Live relay: room joins, event fan-out and live toggles.

Nothing in this module touches the database except the delayed live-flag
confirmation, which is delegated to the toggle state machine.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from quizlive.realtime.live_toggle import (
    EVENT_ACTIVATE,
    EVENT_DEACTIVATE,
    LiveToggleStateMachine,
    QuizLiveSnapshot,
)
from quizlive.realtime.payloads import (
    ClassStatusEvent,
    InvalidRelayPayload,
    LiveAnswerEvent,
    LiveStatusEvent,
    now_ms,
    parse_room_id,
)
from quizlive.realtime.rooms import (
    RoomRegistry,
    room_for_class,
    room_for_professor,
    room_for_quiz,
    room_for_user,
)

logger = logging.getLogger(__name__)

Emit = Callable[[str, Any, str], None]


class RelayNotInitializedError(RuntimeError):
    """The relay was used before a realtime transport was bound to it."""


class LiveRelay:
    """Process-wide relay state, built once per application."""

    def __init__(self, registry: RoomRegistry | None = None) -> None:
        self.registry = registry or RoomRegistry()
        self._emit: Emit | None = None
        self._toggles: LiveToggleStateMachine | None = None
        self._closed = False

    # -- setup -------------------------------------------------------------

    def bind(
        self,
        emit: Emit,
        persist: Callable[[Any, bool], None],
        delay_seconds: float,
        spawn: Callable[..., Any],
        sleep: Callable[[float], None],
    ) -> "LiveRelay":
        """Attach a transport. ``emit(event, payload, sid)`` delivers to one session."""
        self._emit = emit
        self._toggles = LiveToggleStateMachine(
            broadcast=self._broadcast_toggle,
            persist=persist,
            delay_seconds=delay_seconds,
            spawn=spawn,
            sleep=sleep,
        )
        self._closed = False
        return self

    def init_app(self, app, socketio, persist: Callable[[Any, bool], None] | None = None) -> "LiveRelay":
        """Bind to a Flask-SocketIO server and register on ``app.extensions``."""
        def persist_in_app_context(quiz_id, desired):
            with app.app_context():
                if persist is None:
                    from quizlive.quiz import services
                    services.set_quiz_live_active(quiz_id, desired)
                else:
                    persist(quiz_id, desired)

        def emit(event, payload, sid):
            socketio.emit(event, payload, to=sid)

        self.bind(
            emit=emit,
            persist=persist_in_app_context,
            delay_seconds=app.config["LIVE_CONFIRM_DELAY_MS"] / 1000.0,
            spawn=socketio.start_background_task,
            sleep=socketio.sleep,
        )
        app.extensions["live_relay"] = self
        return self

    @property
    def is_bound(self) -> bool:
        return self._emit is not None and not self._closed

    @property
    def toggles(self) -> LiveToggleStateMachine:
        self._ensure_bound()
        return self._toggles

    def _ensure_bound(self) -> None:
        if self._closed:
            raise RelayNotInitializedError("Live relay has been shut down")
        if self._emit is None or self._toggles is None:
            raise RelayNotInitializedError("Live relay used before the realtime transport was initialized")

    def shutdown(self) -> list[str]:
        """Drain the relay: drop memberships and pending confirmations."""
        dropped: list[str] = []
        if self._toggles is not None:
            dropped = self._toggles.shutdown()
        self.registry.clear()
        self._closed = True
        logger.info("Live relay shut down")
        return dropped

    # -- fan-out -----------------------------------------------------------

    def fanout(self, event: str, payload: Any, *rooms: str, skip_sid: str | None = None) -> int:
        """Send one copy of ``payload`` to every session in ``rooms``."""
        self._ensure_bound()
        delivered = 0
        for sid in self.registry.members(*rooms):
            if sid == skip_sid:
                continue
            try:
                self._emit(event, payload, sid)
            except Exception:
                logger.exception("Failed to deliver %s to session %s", event, sid)
                continue
            delivered += 1
        return delivered

    def send_to_session(self, sid: str, event: str, payload: Any) -> None:
        self._ensure_bound()
        self._emit(event, payload, sid)

    def broadcast_to_quiz(self, quiz_id, event: str, payload: Any, skip_sid: str | None = None) -> int:
        return self.fanout(event, payload, room_for_quiz(quiz_id), skip_sid=skip_sid)

    def notify_user(self, user_id, event: str, payload: Any) -> int:
        return self.fanout(event, payload, room_for_user(user_id))

    def _broadcast_toggle(self, quiz_id, event: str, payload: dict) -> int:
        return self.broadcast_to_quiz(quiz_id, event, payload)

    # -- room joins --------------------------------------------------------

    def _join(self, sid: str, raw_id: Any, room_for: Callable[[Any], str]) -> str | None:
        self._ensure_bound()
        try:
            room = room_for(parse_room_id(raw_id))
        except InvalidRelayPayload as exc:
            logger.warning("Session %s sent an invalid room id: %s", sid, exc)
            return None
        if self.registry.join(sid, room):
            logger.info("Session %s joined room %s", sid, room)
        return room

    def on_join_user_room(self, sid: str, user_id: Any) -> str | None:
        return self._join(sid, user_id, room_for_user)

    def on_join_quiz_room(self, sid: str, quiz_id: Any) -> str | None:
        return self._join(sid, quiz_id, room_for_quiz)

    def on_join_professor_room(self, sid: str, professor_id: Any) -> str | None:
        return self._join(sid, professor_id, room_for_professor)

    def on_join_class_room(self, sid: str, class_id: Any) -> str | None:
        room = self._join(sid, class_id, room_for_class)
        if room is None:
            return None
        size = self.registry.room_size(room)
        self.send_to_session(sid, "room_joined", {"classId": class_id, "roomSize": size})
        return room

    def on_leave_quiz_room(self, sid: str, quiz_id: Any) -> bool:
        self._ensure_bound()
        try:
            room = room_for_quiz(parse_room_id(quiz_id))
        except InvalidRelayPayload as exc:
            logger.warning("Session %s sent an invalid room id: %s", sid, exc)
            return False
        return self.registry.leave(sid, room)

    def on_disconnect(self, sid: str) -> set[str]:
        rooms = self.registry.leave_all(sid)
        logger.info("Session %s disconnected, left %d room(s)", sid, len(rooms))
        return rooms

    # -- relayed events ----------------------------------------------------

    def on_live_answer_update(self, sid: str, payload: Any) -> int:
        """Relay a student's current selection to the quiz room."""
        try:
            event = LiveAnswerEvent.from_payload(payload)
        except InvalidRelayPayload as exc:
            logger.warning("Dropping live_answer_update from %s: %s", sid, exc)
            return 0

        rooms = [room_for_quiz(event.quiz_id)]
        if event.professor_id not in (None, ""):
            rooms.append(room_for_professor(event.professor_id))
        delivered = self.fanout("live_answer_update", event.to_payload(), *rooms, skip_sid=sid)
        logger.debug(
            "live_answer_update quiz=%s question=%s student=%s -> %d session(s)",
            event.quiz_id, event.question_id, event.student_id, delivered,
        )
        return delivered

    def on_live_status(self, sid: str, event_name: str, payload: Any) -> int:
        """Relay a client-originated ``live_quiz_activate`` / ``live_quiz_deactivate``."""
        if event_name not in (EVENT_ACTIVATE, EVENT_DEACTIVATE):
            logger.warning("Dropping unknown live status event %r from %s", event_name, sid)
            return 0
        try:
            event = LiveStatusEvent.from_payload(payload)
        except InvalidRelayPayload as exc:
            logger.warning("Dropping %s from %s: %s", event_name, sid, exc)
            return 0
        return self.broadcast_to_quiz(event.quiz_id, event_name, event.to_payload())

    def on_quiz_live_status_change(self, sid: str, payload: Any) -> int:
        try:
            event = ClassStatusEvent.from_payload(payload)
        except InvalidRelayPayload as exc:
            logger.warning("Dropping quiz_live_status_change from %s: %s", sid, exc)
            return 0
        room = room_for_class(event.class_id)
        if self.registry.room_size(room) == 0:
            logger.warning("No sessions in %s; status change for quiz %s reaches nobody", room, event.quiz_id)
        return self.fanout("quiz_live_status_change", event.to_payload(), room)

    def on_test_ping(self, sid: str, data: Any) -> None:
        message = data.get("message") if isinstance(data, dict) else data
        self.send_to_session(sid, "test_pong", {
            "message": "Pong from backend",
            "originalMessage": message,
            "timestamp": now_ms(),
        })

    # -- live toggle -------------------------------------------------------

    def toggle_live(self, quiz_id, desired: bool, announcement: LiveStatusEvent,
                    stored: bool | None = None) -> QuizLiveSnapshot:
        return self.toggles.toggle(quiz_id, desired, announcement, stored=stored)

    def live_state(self, quiz_id) -> QuizLiveSnapshot:
        return self.toggles.state_of(quiz_id)


def current_relay() -> LiveRelay:
    """Return the relay of the current Flask application."""
    from flask import current_app

    relay = current_app.extensions.get("live_relay")
    if relay is None:
        raise RelayNotInitializedError("Live relay is not initialized for this application")
    return relay

"""Socket.IO event handlers.

Handlers are thin: they pull the session id off the request and hand the
payload to the relay object they were registered with.
"""

from __future__ import annotations

import logging

from flask import request
from flask_login import current_user

from quizlive.realtime.live_toggle import EVENT_ACTIVATE, EVENT_DEACTIVATE
from quizlive.realtime.relay import LiveRelay

logger = logging.getLogger(__name__)


def register_socket_events(socketio, relay: LiveRelay) -> None:
    """Register the realtime events of the default namespace on ``socketio``."""

    @socketio.on("connect")
    def handle_connect(auth=None):
        sid = request.sid
        logger.info("Socket connected: %s", sid)
        # Logged-in users always get their personal room
        if current_user and current_user.is_authenticated:
            relay.on_join_user_room(sid, current_user.id)

    @socketio.on("disconnect")
    def handle_disconnect(*args):
        relay.on_disconnect(request.sid)

    @socketio.on("join_user_room")
    def handle_join_user_room(user_id):
        relay.on_join_user_room(request.sid, user_id)

    @socketio.on("join_quiz_room")
    def handle_join_quiz_room(quiz_id):
        relay.on_join_quiz_room(request.sid, quiz_id)

    @socketio.on("leave_quiz_room")
    def handle_leave_quiz_room(quiz_id):
        relay.on_leave_quiz_room(request.sid, quiz_id)

    @socketio.on("join_professor_room")
    def handle_join_professor_room(professor_id):
        relay.on_join_professor_room(request.sid, professor_id)

    @socketio.on("join_class_room")
    def handle_join_class_room(class_id):
        relay.on_join_class_room(request.sid, class_id)

    @socketio.on("live_answer_update")
    def handle_live_answer_update(data=None):
        relay.on_live_answer_update(request.sid, data)

    @socketio.on(EVENT_ACTIVATE)
    def handle_live_quiz_activate(data=None):
        relay.on_live_status(request.sid, EVENT_ACTIVATE, data)

    @socketio.on(EVENT_DEACTIVATE)
    def handle_live_quiz_deactivate(data=None):
        relay.on_live_status(request.sid, EVENT_DEACTIVATE, data)

    @socketio.on("quiz_live_status_change")
    def handle_quiz_live_status_change(data=None):
        relay.on_quiz_live_status_change(request.sid, data)

    @socketio.on("test_ping")
    def handle_test_ping(data=None):
        logger.debug("Test ping from %s: %s", request.sid, data)
        relay.on_test_ping(request.sid, data)

    @socketio.on_error_default
    def handle_socket_error(exc):
        # Keep the realtime channel alive; a failing handler only loses its event
        logger.exception("Unhandled error in socket handler for %s", getattr(request, "sid", None))

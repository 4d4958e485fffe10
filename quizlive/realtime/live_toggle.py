"""Broadcast-then-confirm handling of a quiz's live flag.

A professor's start/stop is broadcast to the quiz room right away, and the
``is_live_active`` column is written only after a fixed delay. Until that
write lands the broadcast value and the stored value may disagree.

States per quiz::

    INACTIVE --toggle--> BROADCAST_PENDING --confirm ok--> ACTIVE / INACTIVE
                               |
                               +--confirm failed--> previous state (error kept)

A toggle issued while a confirmation is pending supersedes it: the older
confirmation wakes up, notices it is stale and skips its write, so only the
last requested value is persisted.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Any, Callable

from quizlive.realtime.payloads import LiveStatusEvent

logger = logging.getLogger(__name__)

EVENT_ACTIVATE = "live_quiz_activate"
EVENT_DEACTIVATE = "live_quiz_deactivate"

Broadcast = Callable[[Any, str, dict], int]
Persist = Callable[[Any, bool], None]
Spawn = Callable[..., Any]
Sleep = Callable[[float], None]


class LiveState(str, enum.Enum):
    INACTIVE = "inactive"
    BROADCAST_PENDING = "broadcast_pending"
    ACTIVE = "active"


def event_for(desired: bool) -> str:
    return EVENT_ACTIVATE if desired else EVENT_DEACTIVATE


@dataclass(frozen=True)
class QuizLiveSnapshot:
    quiz_id: str
    state: LiveState = LiveState.INACTIVE
    desired: bool | None = None
    persisted: bool | None = None
    generation: int = 0
    broadcast_at: float | None = None
    confirmed_at: float | None = None
    last_error: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.state is LiveState.BROADCAST_PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "quizId": self.quiz_id,
            "state": self.state.value,
            "desired": self.desired,
            "persisted": self.persisted,
            "generation": self.generation,
            "broadcastAt": self.broadcast_at,
            "confirmedAt": self.confirmed_at,
            "lastError": self.last_error,
        }


def _settled(value: bool | None) -> LiveState:
    return LiveState.ACTIVE if value else LiveState.INACTIVE


class LiveToggleStateMachine:
    """Coordinates the broadcast half and the persisted half of a live toggle."""

    def __init__(
        self,
        broadcast: Broadcast,
        persist: Persist,
        delay_seconds: float,
        spawn: Spawn,
        sleep: Sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if delay_seconds < 0:
            raise ValueError("confirmation delay must not be negative")
        self._broadcast = broadcast
        self._persist = persist
        self._spawn = spawn
        self._sleep = sleep
        self._clock = clock
        self.delay_seconds = delay_seconds
        self._lock = threading.Lock()
        self._states: dict[str, QuizLiveSnapshot] = {}
        self._closed = False

    def toggle(self, quiz_id, desired: bool, announcement: LiveStatusEvent,
               stored: bool | None = None) -> QuizLiveSnapshot:
        """
        Broadcast the new state now and schedule its confirmation write.

        ``stored`` is the flag as currently held in the database. A failed
        confirmation falls back to it.
        """
        key = str(quiz_id)
        desired = bool(desired)
        with self._lock:
            if self._closed:
                raise RuntimeError("live toggle state machine has been shut down")
            current = self._states.get(key, QuizLiveSnapshot(quiz_id=key))
            if current.is_pending:
                logger.info(
                    "Quiz %s toggle to %s supersedes pending confirmation of %s",
                    key, desired, current.desired,
                )
            elif stored is not None:
                # Nothing in flight, so the database value is authoritative
                current = replace(current, persisted=bool(stored))
            snapshot = replace(
                current,
                state=LiveState.BROADCAST_PENDING,
                desired=desired,
                generation=current.generation + 1,
                broadcast_at=self._clock(),
                last_error=None,
            )
            self._states[key] = snapshot

        payload = announcement.stamped().to_payload()
        delivered = self._broadcast(quiz_id, event_for(desired), payload)
        logger.info(
            "Quiz %s live %s broadcast to %d session(s); confirming in %.3fs",
            key, "activation" if desired else "deactivation", delivered, self.delay_seconds,
        )

        self._spawn(self._confirm_later, key, snapshot.generation, desired)
        return snapshot

    def _confirm_later(self, key: str, generation: int, desired: bool) -> None:
        self._sleep(self.delay_seconds)

        with self._lock:
            current = self._states.get(key)
            if self._closed:
                logger.warning("Quiz %s confirmation dropped: relay shut down", key)
                return
            if current is None or current.generation != generation:
                logger.debug("Quiz %s confirmation %d superseded, skipping write", key, generation)
                return

        try:
            self._persist(key, desired)
        except Exception as exc:
            logger.exception("Failed to confirm quiz %s live state %s in database", key, desired)
            with self._lock:
                current = self._states.get(key)
                if current is not None and current.generation == generation:
                    self._states[key] = replace(
                        current,
                        state=_settled(current.persisted),
                        last_error=str(exc) or exc.__class__.__name__,
                    )
            return

        with self._lock:
            current = self._states.get(key)
            if current is None:
                return
            if current.generation == generation:
                self._states[key] = replace(
                    current,
                    state=_settled(desired),
                    persisted=desired,
                    confirmed_at=self._clock(),
                )
            else:
                self._states[key] = replace(current, persisted=desired)
        logger.info("Quiz %s live state %s confirmed in database", key, desired)

    def state_of(self, quiz_id) -> QuizLiveSnapshot:
        key = str(quiz_id)
        with self._lock:
            return self._states.get(key, QuizLiveSnapshot(quiz_id=key))

    def pending(self) -> list[str]:
        with self._lock:
            return [key for key, snap in self._states.items() if snap.is_pending]

    def shutdown(self) -> list[str]:
        """Stop accepting toggles. Pending confirmations will not be written."""
        with self._lock:
            self._closed = True
            dropped = [key for key, snap in self._states.items() if snap.is_pending]
        if dropped:
            logger.warning("Shutting down with unconfirmed live toggles for quizzes: %s", ", ".join(dropped))
        return dropped

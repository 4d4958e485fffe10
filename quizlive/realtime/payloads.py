"""Shapes of the events carried by the live relay.

Payload keys keep the camelCase names the browser clients send.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from quizlive.common.parsing import parse_bool


class InvalidRelayPayload(ValueError):
    """A client event is missing required fields or is not an object."""


def now_ms() -> int:
    return int(time.time() * 1000)


def _require(payload: Any, fields: tuple[str, ...]) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidRelayPayload(f"expected an object, got {type(payload).__name__}")
    missing = [name for name in fields if payload.get(name) in (None, "")]
    if missing:
        raise InvalidRelayPayload(f"missing required field(s): {', '.join(missing)}")
    return payload


def parse_room_id(value: Any) -> str:
    """Validate the bare id sent with the ``join_*_room`` events."""
    if isinstance(value, dict):
        # some clients wrap the id: {"quizId": 7}
        values = [v for v in value.values() if v not in (None, "")]
        value = values[0] if len(values) == 1 else None
    if value is None or isinstance(value, (bool, list, dict)):
        raise InvalidRelayPayload("room id is required")
    text = str(value).strip()
    if not text or any(ch.isspace() for ch in text):
        raise InvalidRelayPayload(f"invalid room id: {value!r}")
    return text


@dataclass(frozen=True)
class LiveAnswerEvent:
    student_id: Any
    student_name: Any
    quiz_id: Any
    question_id: Any
    selected_option_id: Any
    option_text: Any
    timestamp: Any
    professor_id: Any = None

    REQUIRED = ("studentId", "quizId", "questionId", "selectedOptionId")

    @classmethod
    def from_payload(cls, payload: Any) -> "LiveAnswerEvent":
        data = _require(payload, cls.REQUIRED)
        return cls(
            student_id=data["studentId"],
            student_name=data.get("studentName"),
            quiz_id=data["quizId"],
            question_id=data["questionId"],
            selected_option_id=data["selectedOptionId"],
            option_text=data.get("optionText"),
            timestamp=data.get("timestamp"),
            professor_id=data.get("professorId"),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "studentId": self.student_id,
            "studentName": self.student_name,
            "quizId": self.quiz_id,
            "questionId": self.question_id,
            "selectedOptionId": self.selected_option_id,
            "optionText": self.option_text,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class LiveStatusEvent:
    """Announcement sent with ``live_quiz_activate`` / ``live_quiz_deactivate``."""

    quiz_id: Any
    quiz_title: Any = None
    class_id: Any = None
    professor_name: Any = None
    timestamp: Any = None

    REQUIRED = ("quizId",)

    @classmethod
    def from_payload(cls, payload: Any) -> "LiveStatusEvent":
        data = _require(payload, cls.REQUIRED)
        return cls(
            quiz_id=data["quizId"],
            quiz_title=data.get("quizTitle"),
            class_id=data.get("classId"),
            professor_name=data.get("professorName"),
            timestamp=data.get("timestamp"),
        )

    def stamped(self) -> "LiveStatusEvent":
        if self.timestamp is not None:
            return self
        return LiveStatusEvent(
            quiz_id=self.quiz_id,
            quiz_title=self.quiz_title,
            class_id=self.class_id,
            professor_name=self.professor_name,
            timestamp=now_ms(),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "quizId": self.quiz_id,
            "quizTitle": self.quiz_title,
            "classId": self.class_id,
            "professorName": self.professor_name,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ClassStatusEvent:
    """``quiz_live_status_change`` relayed to everyone in a class room."""

    quiz_id: Any
    class_id: Any
    is_live_active: bool
    quiz_title: Any = None
    professor_id: Any = None
    professor_name: Any = None
    timestamp: Any = None

    REQUIRED = ("quizId", "classId", "isLiveActive")

    @classmethod
    def from_payload(cls, payload: Any) -> "ClassStatusEvent":
        data = _require(payload, cls.REQUIRED)
        is_live_active = parse_bool(data["isLiveActive"])
        if is_live_active is None:
            raise InvalidRelayPayload(f"isLiveActive is not a boolean: {data['isLiveActive']!r}")
        return cls(
            quiz_id=data["quizId"],
            class_id=data["classId"],
            is_live_active=is_live_active,
            quiz_title=data.get("quizTitle"),
            professor_id=data.get("professorId"),
            professor_name=data.get("professorName"),
            timestamp=data.get("timestamp"),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "quizId": self.quiz_id,
            "quizTitle": self.quiz_title,
            "isLiveActive": self.is_live_active,
            "professorId": self.professor_id,
            "professorName": self.professor_name,
            "timestamp": self.timestamp,
        }

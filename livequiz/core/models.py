"""Domain models for live quiz sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Answer:
    """Selectable answer of a question."""

    id: int
    text: str
    is_correct: bool


@dataclass(frozen=True, slots=True)
class Question:
    """Question with its answers and the time participants get to respond."""

    id: int
    text: str
    answer_time_seconds: int
    answers: tuple[Answer, ...]

    def find_answer(self, answer_id: int) -> Answer | None:
        return next((answer for answer in self.answers if answer.id == answer_id), None)


@dataclass(frozen=True, slots=True)
class QuizDefinition:
    """Stored quiz a session is created from. Read-only to the session layer."""

    id: int
    name: str
    owner: str
    questions: tuple[Question, ...]


class SessionState(str, Enum):
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"


@dataclass(slots=True)
class SubmittedAnswer:
    """Answer recorded for a participant, already scored."""

    question_id: int
    answer_id: int
    is_correct: bool
    points: int
    submitted_at: datetime


@dataclass(slots=True)
class Participant:
    """Nicknamed entrant of a session with an accumulating score."""

    nickname: str
    joined_at: datetime
    answers: list[SubmittedAnswer] = field(default_factory=list)
    score: int = 0

    def has_answered(self, question_id: int) -> bool:
        return any(answer.question_id == question_id for answer in self.answers)

    def record(self, answer: SubmittedAnswer) -> None:
        self.answers.append(answer)
        self.score += answer.points

    def view(self) -> ParticipantView:
        return ParticipantView(nickname=self.nickname, score=self.score)


@dataclass(frozen=True, slots=True)
class ParticipantView:
    """Immutable snapshot of a participant handed to subscribers."""

    nickname: str
    score: int


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Read model of a session at one point in time."""

    session_id: str
    quiz_id: int
    quiz_name: str
    state: SessionState
    question_index: int
    question_count: int
    remaining_seconds: float | None
    created_at: datetime
    started_at: datetime | None
    finished_at: datetime | None
    participants: tuple[ParticipantView, ...]


@dataclass(frozen=True, slots=True)
class RunningQuestion:
    """The question currently open for answers in a running session."""

    index: int
    question: Question
    remaining_seconds: float

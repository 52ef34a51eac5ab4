"""Pydantic payloads exchanged with HTTP and WebSocket clients."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from livequiz.core.events import ParticipantsUpdatedEvent, QuizEvent, ResultsUpdatedEvent
from livequiz.core.models import ParticipantView, QuizDefinition, RunningQuestion, SessionSnapshot


class NicknamePayload(BaseModel):
    """Payload schema for joining a session."""

    nickname: str = Field(min_length=1)


class ParticipantPayload(BaseModel):
    nickname: str
    score: int


class QuizSummary(BaseModel):
    id: int
    name: str
    owner: str
    question_count: int


class SessionCreatedResponse(BaseModel):
    session_id: str


class SessionPayload(BaseModel):
    session_id: str
    quiz_id: int
    quiz_name: str
    state: str
    question_index: int
    question_count: int
    remaining_seconds: float | None
    created_at: datetime
    started_at: datetime | None
    finished_at: datetime | None
    participants: list[ParticipantPayload]


class AnswerOptionPayload(BaseModel):
    id: int
    text: str


class QuestionPayload(BaseModel):
    """Running question as shown to participants; correctness is withheld."""

    session_id: str
    question_index: int
    question_id: int
    question_html: str
    answers: list[AnswerOptionPayload]
    answer_time_seconds: int
    remaining_seconds: float | None


class ParticipantsUpdatedPayload(BaseModel):
    type: Literal["participants_updated"] = "participants_updated"
    session_id: str
    sequence: int
    participants: list[ParticipantPayload]


class ResultsUpdatedPayload(BaseModel):
    type: Literal["results_updated"] = "results_updated"
    session_id: str
    sequence: int
    participants: list[ParticipantPayload]
    finished: bool
    question_index: int


class ConnectedPayload(BaseModel):
    type: Literal["connected"] = "connected"
    session: SessionPayload


def participant_payloads(views: tuple[ParticipantView, ...]) -> list[ParticipantPayload]:
    return [ParticipantPayload(nickname=view.nickname, score=view.score) for view in views]


def quiz_summary(quiz: QuizDefinition) -> QuizSummary:
    return QuizSummary(id=quiz.id, name=quiz.name, owner=quiz.owner, question_count=len(quiz.questions))


def session_payload(snapshot: SessionSnapshot) -> SessionPayload:
    return SessionPayload(
        session_id=snapshot.session_id,
        quiz_id=snapshot.quiz_id,
        quiz_name=snapshot.quiz_name,
        state=snapshot.state.value,
        question_index=snapshot.question_index,
        question_count=snapshot.question_count,
        remaining_seconds=snapshot.remaining_seconds,
        created_at=snapshot.created_at,
        started_at=snapshot.started_at,
        finished_at=snapshot.finished_at,
        participants=participant_payloads(snapshot.participants),
    )


def question_payload(session_id: str, running: RunningQuestion, question_html: str) -> QuestionPayload:
    question = running.question
    return QuestionPayload(
        session_id=session_id,
        question_index=running.index,
        question_id=question.id,
        question_html=question_html,
        answers=[AnswerOptionPayload(id=answer.id, text=answer.text) for answer in question.answers],
        answer_time_seconds=question.answer_time_seconds,
        remaining_seconds=running.remaining_seconds,
    )


def event_payload(event: QuizEvent) -> dict[str, object]:
    """Serialize a quiz event into the JSON message sent over the WebSocket."""
    if isinstance(event, ParticipantsUpdatedEvent):
        payload: BaseModel = ParticipantsUpdatedPayload(
            session_id=event.session_id,
            sequence=event.sequence,
            participants=participant_payloads(event.participants),
        )
    elif isinstance(event, ResultsUpdatedEvent):
        payload = ResultsUpdatedPayload(
            session_id=event.session_id,
            sequence=event.sequence,
            participants=participant_payloads(event.participants),
            finished=event.finished,
            question_index=event.question_index,
        )
    else:
        raise TypeError(f"Unsupported event type: {type(event).__name__}")
    return payload.model_dump(mode="json")

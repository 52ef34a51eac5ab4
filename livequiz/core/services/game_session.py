"""Lifecycle state machine of a single quiz session."""

from __future__ import annotations

from datetime import datetime
from functools import partial
import logging
from threading import RLock, Timer
import time
from typing import Callable, Protocol

from livequiz.core.errors import InvalidStateError, LateAnswerError, SessionClosedError
from livequiz.core.events import ParticipantsUpdatedEvent, ResultsUpdatedEvent
from livequiz.core.models import (
    Question,
    QuizDefinition,
    RunningQuestion,
    SessionSnapshot,
    SessionState,
    utc_now,
)
from livequiz.core.services.broadcaster import EventBroadcaster
from livequiz.core.services.roster import Roster
from livequiz.core.services.scoreboard import ranking, score_answer

logger = logging.getLogger(__name__)


class QuestionTimer(Protocol):
    daemon: bool

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], QuestionTimer]


class QuizSession:
    """One run of a quiz, from creation to finish.

    Every read-modify-write happens under the session lock, and events are
    published before the lock is released, so subscribers see events in the
    order their mutations acquired the lock. The question timer and the last
    participant's answer race for the same guarded advance; whichever comes
    second finds the question already advanced and does nothing.
    """

    def __init__(
        self,
        session_id: str,
        quiz: QuizDefinition,
        broadcaster: EventBroadcaster,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: TimerFactory = Timer,
    ) -> None:
        self.session_id = session_id
        self.quiz = quiz
        self._broadcaster = broadcaster
        self._clock = clock
        self._timer_factory = timer_factory
        self._lock = RLock()

        self._state = SessionState.CREATED
        self._question_index = 0
        self._question_started_at: float | None = None
        self._timer: QuestionTimer | None = None
        self._roster = Roster()
        self._sequence = 0

        self.created_at: datetime = utc_now()
        self.started_at: datetime | None = None
        self.finished_at: datetime | None = None

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def question_index(self) -> int:
        with self._lock:
            return self._question_index

    def start(self) -> None:
        with self._lock:
            if self._state is not SessionState.CREATED:
                raise InvalidStateError(
                    f"Session {self.session_id} cannot start from state {self._state.value}."
                )
            self._state = SessionState.RUNNING
            self.started_at = utc_now()
            logger.info("Session %s started with %d participant(s)", self.session_id, len(self._roster))
            self._begin_question(0)
            self._publish_results()

    def add_participant(self, nickname: str) -> bool:
        """Admit ``nickname``; False if it is invalid or already taken."""
        with self._lock:
            if self._state is SessionState.FINISHED:
                raise SessionClosedError(f"Session {self.session_id} is finished.")
            participant = self._roster.admit(nickname)
            if participant is None:
                logger.info("Session %s rejected nickname %r", self.session_id, nickname)
                return False
            logger.info("Session %s admitted %r", self.session_id, participant.nickname)
            self._sequence += 1
            self._broadcaster.publish(
                self.session_id,
                ParticipantsUpdatedEvent(
                    session_id=self.session_id,
                    sequence=self._sequence,
                    participants=self._roster.views(),
                ),
            )
            return True

    def submit_answer(self, nickname: str, answer_id: int) -> bool:
        """Record and score an answer for the current question.

        Returns False when the session is not running, the participant is
        unknown, already answered, or picked an answer of another question.
        """
        with self._lock:
            if self._state is SessionState.FINISHED:
                raise SessionClosedError(f"Session {self.session_id} is finished.")
            if self._state is not SessionState.RUNNING:
                return False
            participant = self._roster.get(nickname)
            if participant is None:
                return False
            if self._window_elapsed():
                raise LateAnswerError(
                    f"Question {self._question_index} of session {self.session_id} is closed."
                )
            question = self._current_question()
            if participant.has_answered(question.id):
                return False
            submitted = score_answer(question, answer_id)
            if submitted is None:
                return False

            participant.record(submitted)
            logger.debug(
                "Session %s: %r answered question %d (%s)",
                self.session_id,
                participant.nickname,
                self._question_index,
                "correct" if submitted.is_correct else "wrong",
            )
            if self._roster.all_answered(question.id):
                self._advance()
            self._publish_results()
            return True

    def expire_question(self, question_index: int) -> bool:
        """Close ``question_index`` because its time ran out.

        Returns False if that question is no longer the running one.
        """
        with self._lock:
            if self._state is not SessionState.RUNNING or question_index != self._question_index:
                return False
            logger.info("Session %s: time is up for question %d", self.session_id, question_index)
            self._advance()
            self._publish_results()
            return True

    def running_question(self) -> RunningQuestion | None:
        with self._lock:
            if self._state is not SessionState.RUNNING:
                return None
            return RunningQuestion(
                index=self._question_index,
                question=self._current_question(),
                remaining_seconds=self.remaining_seconds() or 0.0,
            )

    def remaining_seconds(self) -> float | None:
        with self._lock:
            if self._state is not SessionState.RUNNING or self._question_started_at is None:
                return None
            limit = self._current_question().answer_time_seconds
            return max(0.0, limit - (self._clock() - self._question_started_at))

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                session_id=self.session_id,
                quiz_id=self.quiz.id,
                quiz_name=self.quiz.name,
                state=self._state,
                question_index=self._question_index,
                question_count=len(self.quiz.questions),
                remaining_seconds=self.remaining_seconds(),
                created_at=self.created_at,
                started_at=self.started_at,
                finished_at=self.finished_at,
                participants=self._roster.views(),
            )

    def _current_question(self) -> Question:
        return self.quiz.questions[self._question_index]

    def _window_elapsed(self) -> bool:
        if self._question_started_at is None:
            return False
        elapsed = self._clock() - self._question_started_at
        return elapsed >= self._current_question().answer_time_seconds

    def _begin_question(self, index: int) -> None:
        self._question_index = index
        self._question_started_at = self._clock()
        limit = self._current_question().answer_time_seconds
        timer = self._timer_factory(limit, partial(self.expire_question, index))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _advance(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        next_index = self._question_index + 1
        if next_index < len(self.quiz.questions):
            self._begin_question(next_index)
            return
        self._state = SessionState.FINISHED
        self._question_started_at = None
        self.finished_at = utc_now()
        logger.info("Session %s finished", self.session_id)

    def _publish_results(self) -> None:
        self._sequence += 1
        self._broadcaster.publish(
            self.session_id,
            ResultsUpdatedEvent(
                session_id=self.session_id,
                sequence=self._sequence,
                participants=ranking(self._roster.participants()),
                finished=self._state is SessionState.FINISHED,
                question_index=self._question_index,
            ),
        )

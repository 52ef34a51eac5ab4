"""Registry of the live sessions held by this process."""

from __future__ import annotations

import logging
from threading import Lock, Timer
import time
from typing import Callable
from uuid import uuid4

from livequiz.core.errors import NotFoundError
from livequiz.core.services.broadcaster import EventBroadcaster
from livequiz.core.services.game_session import QuizSession, TimerFactory
from livequiz.core.services.quiz_repository import QuizRepository

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Creates sessions from stored quizzes and looks them up by id.

    Sessions live in memory only; they are lost when the process exits.
    """

    def __init__(
        self,
        repository: QuizRepository,
        broadcaster: EventBroadcaster,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: TimerFactory = Timer,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
    ) -> None:
        self._lock = Lock()
        self._repository = repository
        self._broadcaster = broadcaster
        self._clock = clock
        self._timer_factory = timer_factory
        self._id_factory = id_factory
        self._sessions: dict[str, QuizSession] = {}

    def create_session(self, quiz_id: int) -> QuizSession:
        quiz = self._repository.load_quiz_definition(quiz_id)
        with self._lock:
            session_id = self._id_factory()
            while session_id in self._sessions:
                session_id = self._id_factory()
            session = QuizSession(
                session_id=session_id,
                quiz=quiz,
                broadcaster=self._broadcaster,
                clock=self._clock,
                timer_factory=self._timer_factory,
            )
            self._sessions[session_id] = session
        logger.info("Created session %s for quiz %r", session_id, quiz.name)
        return session

    def get_session(self, session_id: str) -> QuizSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} does not exist.")
        return session

    def list_sessions(self) -> list[QuizSession]:
        with self._lock:
            return list(self._sessions.values())

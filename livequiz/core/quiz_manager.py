"""Facade over the quiz services, exposed to the HTTP/WebSocket layer."""

from __future__ import annotations

import logging

from livequiz.core.errors import LateAnswerError, SessionClosedError
from livequiz.core.models import QuizDefinition, RunningQuestion, SessionSnapshot
from livequiz.core.services.broadcaster import EventBroadcaster, EventSink, Subscription
from livequiz.core.services.quiz_repository import QuizRepository
from livequiz.core.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class QuizManager:
    """Facade for quiz services: Repository, Registry and Broadcaster.

    Unknown ids raise ``NotFoundError`` and starting a session twice raises
    ``InvalidStateError``. Joining or answering never raises for expected
    contention (taken nickname, finished session, late answer); those calls
    return False instead.
    """

    def __init__(
        self,
        repository: QuizRepository,
        registry: SessionRegistry,
        broadcaster: EventBroadcaster,
    ) -> None:
        self._repository = repository
        self._registry = registry
        self._broadcaster = broadcaster

    # --- Quiz Repository Delegation ---

    def list_quizzes(self, owner: str | None = None) -> list[QuizDefinition]:
        return self._repository.list_quizzes(owner)

    # --- Session Lifecycle ---

    def create_session(self, quiz_id: int) -> str:
        return self._registry.create_session(quiz_id).session_id

    def start_session(self, session_id: str) -> SessionSnapshot:
        session = self._registry.get_session(session_id)
        session.start()
        return session.snapshot()

    def get_session_snapshot(self, session_id: str) -> SessionSnapshot:
        return self._registry.get_session(session_id).snapshot()

    def get_running_question(self, session_id: str) -> RunningQuestion | None:
        """Return the question open for answers, or None unless the session runs."""
        return self._registry.get_session(session_id).running_question()

    # --- Participants ---

    def add_participant(self, session_id: str, nickname: str) -> bool:
        session = self._registry.get_session(session_id)
        try:
            return session.add_participant(nickname)
        except SessionClosedError:
            logger.info("Session %s is finished; %r cannot join", session_id, nickname)
            return False

    def submit_answer(self, session_id: str, nickname: str, answer_id: int) -> bool:
        session = self._registry.get_session(session_id)
        try:
            return session.submit_answer(nickname, answer_id)
        except (SessionClosedError, LateAnswerError) as exc:
            logger.info("Answer from %r rejected: %s", nickname, exc)
            return False

    # --- Events ---

    def subscribe(self, session_id: str, sink: EventSink) -> Subscription:
        self._registry.get_session(session_id)
        return self._broadcaster.subscribe(session_id, sink)

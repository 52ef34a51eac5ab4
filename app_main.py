"""Application entry point for the LiveQuiz service."""

from __future__ import annotations

from livequiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from livequiz.constants.quiz_constants import DEFAULT_QUIZ_OWNER, QUIZ_DATA_DIR
from livequiz.core.quiz_manager import QuizManager
from livequiz.core.services.broadcaster import EventBroadcaster
from livequiz.core.services.quiz_repository import QuizRepository
from livequiz.core.services.session_registry import SessionRegistry
from livequiz.server.api_server import run_api_server
from livequiz.utils.logging_config import configure_logging


def build_quiz_manager() -> QuizManager:
    """Wire the repository, registry and broadcaster into a quiz manager."""
    repository = QuizRepository()
    repository.load_directory(QUIZ_DATA_DIR, owner=DEFAULT_QUIZ_OWNER)
    broadcaster = EventBroadcaster()
    registry = SessionRegistry(repository, broadcaster)
    return QuizManager(repository, registry, broadcaster)


def main() -> None:
    """Initialize logging, load the bundled quizzes and serve the API."""
    logger = configure_logging()
    logger.info("Starting LiveQuiz service…")

    quiz_manager = build_quiz_manager()
    logger.info("Loaded %d quiz(zes)", len(quiz_manager.list_quizzes()))
    run_api_server(quiz_manager=quiz_manager, host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()

"""In-memory store of quiz definitions that sessions are created from."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock

from livequiz.constants.quiz_constants import DEFAULT_TIME_LIMIT_SECONDS
from livequiz.core.errors import NotFoundError
from livequiz.core.models import Answer, Question, QuizDefinition
from livequiz.core.quiz_importer import QuestionDraft, load_quiz_from_file

logger = logging.getLogger(__name__)


class QuizRepository:
    """Validates, stores and hands out immutable quiz definitions."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._quizzes: dict[int, QuizDefinition] = {}
        self._quiz_counter: int = 0
        self._question_counter: int = 0
        self._answer_counter: int = 0

    def add_quiz(self, name: str, owner: str, questions: list[QuestionDraft]) -> QuizDefinition:
        """Validate the drafts and store them as a new quiz definition."""
        cleaned_name = name.strip()
        if not cleaned_name:
            raise ValueError("Quiz name must not be empty.")
        if not questions:
            raise ValueError("Quiz must contain at least one question.")

        with self._lock:
            prepared = tuple(self._prepare_question(draft) for draft in questions)
            self._quiz_counter += 1
            quiz = QuizDefinition(
                id=self._quiz_counter,
                name=cleaned_name,
                owner=owner,
                questions=prepared,
            )
            self._quizzes[quiz.id] = quiz
        logger.info("Stored quiz %r (id=%s, %d questions)", quiz.name, quiz.id, len(prepared))
        return quiz

    def load_quiz_definition(self, quiz_id: int) -> QuizDefinition:
        with self._lock:
            quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz {quiz_id} does not exist.")
        return quiz

    def list_quizzes(self, owner: str | None = None) -> list[QuizDefinition]:
        with self._lock:
            quizzes = list(self._quizzes.values())
        if owner is not None:
            quizzes = [quiz for quiz in quizzes if quiz.owner == owner]
        return sorted(quizzes, key=lambda quiz: quiz.id)

    def load_directory(self, directory: Path, owner: str) -> list[QuizDefinition]:
        """Import every ``*.txt`` quiz file found in ``directory``."""
        loaded: list[QuizDefinition] = []
        for file_path in sorted(directory.glob("*.txt")):
            imported = load_quiz_from_file(file_path)
            loaded.append(self.add_quiz(imported.name, owner, imported.questions))
        return loaded

    def _prepare_question(self, draft: QuestionDraft) -> Question:
        """Validate and normalize a question before storage."""
        cleaned_text = draft.text.strip()
        if not cleaned_text:
            raise ValueError("Question text must not be empty.")
        if not draft.answers:
            raise ValueError(f"Question '{cleaned_text}' must have at least one answer.")
        if not any(answer.is_correct for answer in draft.answers):
            raise ValueError(f"Question '{cleaned_text}' must have at least one correct answer.")

        answers = []
        for answer in draft.answers:
            answer_text = answer.text.strip()
            if not answer_text:
                raise ValueError("Answer text cannot be empty.")
            self._answer_counter += 1
            answers.append(Answer(id=self._answer_counter, text=answer_text, is_correct=answer.is_correct))

        self._question_counter += 1
        return Question(
            id=self._question_counter,
            text=cleaned_text,
            answer_time_seconds=self._normalize_time_limit(draft.answer_time_seconds),
            answers=tuple(answers),
        )

    @staticmethod
    def _normalize_time_limit(time_limit_seconds: int | None) -> int:
        if time_limit_seconds is None:
            return DEFAULT_TIME_LIMIT_SECONDS
        if not isinstance(time_limit_seconds, int):
            raise ValueError("Time limit must be provided as an integer number of seconds.")
        if time_limit_seconds <= 0:
            raise ValueError("Time limit must be a positive integer.")
        return time_limit_seconds

from __future__ import annotations

from itertools import count
from threading import Lock

import pytest

from livequiz.core.quiz_importer import AnswerDraft, QuestionDraft
from livequiz.core.quiz_manager import QuizManager
from livequiz.core.services.broadcaster import EventBroadcaster
from livequiz.core.services.quiz_repository import QuizRepository
from livequiz.core.services.session_registry import SessionRegistry


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTimer:
    def __init__(self, interval, function) -> None:
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.function()


class ManualTimerFactory:
    """Stands in for threading.Timer; tests fire the timers explicitly."""

    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def __call__(self, interval, function) -> ManualTimer:
        timer = ManualTimer(interval, function)
        self.timers.append(timer)
        return timer

    @property
    def latest(self) -> ManualTimer:
        return self.timers[-1]


class EventRecorder:
    """Thread-safe sink that keeps every event it receives."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.events: list = []

    def __call__(self, event) -> None:
        with self._lock:
            self.events.append(event)

    def of_type(self, event_type) -> list:
        with self._lock:
            return [event for event in self.events if isinstance(event, event_type)]


def make_question(text: str, answers: list[tuple[str, bool]], seconds: int | None = 120) -> QuestionDraft:
    return QuestionDraft(
        text=text,
        answers=[AnswerDraft(text=answer, is_correct=correct) for answer, correct in answers],
        answer_time_seconds=seconds,
    )


def answer_id(quiz, question_index: int, *, correct: bool) -> int:
    question = quiz.questions[question_index]
    return next(answer.id for answer in question.answers if answer.is_correct is correct)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers() -> ManualTimerFactory:
    return ManualTimerFactory()


@pytest.fixture
def repository() -> QuizRepository:
    return QuizRepository()


@pytest.fixture
def single_question_quiz(repository):
    return repository.add_quiz(
        "E2ETestQuiz",
        "DEMO",
        [make_question("Test", [("Test 1", True), ("Test 2", False)], seconds=120)],
    )


@pytest.fixture
def three_question_quiz(repository):
    return repository.add_quiz(
        "Geography",
        "DEMO",
        [
            make_question("Capital of France?", [("Paris", True), ("Lyon", False)], seconds=20),
            make_question("Capital of Italy?", [("Milan", False), ("Rome", True), ("Turin", False)], seconds=30),
            make_question("Capital of Spain?", [("Madrid", True), ("Seville", False)], seconds=10),
        ],
    )


@pytest.fixture
def broadcaster() -> EventBroadcaster:
    return EventBroadcaster()


@pytest.fixture
def registry(repository, broadcaster, clock, timers) -> SessionRegistry:
    ids = count(1)
    return SessionRegistry(
        repository,
        broadcaster,
        clock=clock,
        timer_factory=timers,
        id_factory=lambda: f"session-{next(ids)}",
    )


@pytest.fixture
def manager(repository, registry, broadcaster) -> QuizManager:
    return QuizManager(repository, registry, broadcaster)


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()

from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import answer_id, make_question
from livequiz.core.errors import InvalidStateError, NotFoundError
from livequiz.core.events import ParticipantsUpdatedEvent, ResultsUpdatedEvent
from livequiz.core.models import SessionState


def test_single_question_quiz_ends_after_the_only_answer(manager, single_question_quiz, recorder):
    session_id = manager.create_session(single_question_quiz.id)
    manager.subscribe(session_id, recorder)

    manager.start_session(session_id)
    assert manager.add_participant(session_id, "P1") is True
    assert manager.submit_answer(session_id, "P1", answer_id(single_question_quiz, 0, correct=True)) is True

    final = recorder.of_type(ResultsUpdatedEvent)[-1]
    assert final.finished is True
    assert [(p.nickname, p.score) for p in final.participants] == [("P1", 1)]
    assert manager.get_session_snapshot(session_id).state is SessionState.FINISHED


def test_unanswered_quiz_finishes_when_time_runs_out(manager, single_question_quiz, timers, recorder):
    session_id = manager.create_session(single_question_quiz.id)
    manager.subscribe(session_id, recorder)
    manager.start_session(session_id)

    timers.latest.fire()

    assert recorder.events[-1].finished is True
    assert manager.get_running_question(session_id) is None


def test_add_participant_on_finished_session_returns_false(manager, single_question_quiz, timers):
    session_id = manager.create_session(single_question_quiz.id)
    manager.start_session(session_id)
    timers.latest.fire()

    assert manager.add_participant(session_id, "late") is False


def test_answer_after_time_limit_returns_false(manager, single_question_quiz, clock, recorder):
    session_id = manager.create_session(single_question_quiz.id)
    manager.add_participant(session_id, "P1")
    manager.start_session(session_id)
    manager.subscribe(session_id, recorder)
    clock.advance(121)

    assert manager.submit_answer(session_id, "P1", answer_id(single_question_quiz, 0, correct=True)) is False
    assert recorder.events == []


def test_answer_on_finished_session_returns_false(manager, single_question_quiz):
    session_id = manager.create_session(single_question_quiz.id)
    manager.add_participant(session_id, "P1")
    manager.start_session(session_id)
    correct = answer_id(single_question_quiz, 0, correct=True)
    manager.submit_answer(session_id, "P1", correct)

    assert manager.submit_answer(session_id, "P1", correct) is False


def test_structural_errors_propagate(manager, single_question_quiz):
    with pytest.raises(NotFoundError):
        manager.create_session(999)
    with pytest.raises(NotFoundError):
        manager.add_participant("missing", "P1")
    with pytest.raises(NotFoundError):
        manager.submit_answer("missing", "P1", 1)
    with pytest.raises(NotFoundError):
        manager.subscribe("missing", lambda event: None)

    session_id = manager.create_session(single_question_quiz.id)
    manager.start_session(session_id)
    with pytest.raises(InvalidStateError):
        manager.start_session(session_id)


def test_lists_quizzes_by_owner(manager, single_question_quiz, three_question_quiz):
    assert [quiz.name for quiz in manager.list_quizzes("DEMO")] == ["E2ETestQuiz", "Geography"]


def test_racing_for_one_nickname_admits_exactly_one(manager, single_question_quiz, recorder):
    session_id = manager.create_session(single_question_quiz.id)
    manager.subscribe(session_id, recorder)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: manager.add_participant(session_id, "Racer"), range(32)))

    assert results.count(True) == 1
    assert len(recorder.of_type(ParticipantsUpdatedEvent)) == 1


def test_concurrent_answers_produce_a_serial_event_stream(manager, repository, recorder):
    quiz = repository.add_quiz(
        "Crowd",
        "DEMO",
        [make_question("Pick", [("yes", True), ("no", False)], seconds=120)],
    )
    nicknames = [f"player-{n}" for n in range(40)]
    session_id = manager.create_session(quiz.id)
    for nickname in nicknames:
        manager.add_participant(session_id, nickname)
    manager.start_session(session_id)
    manager.subscribe(session_id, recorder)
    correct, wrong = answer_id(quiz, 0, correct=True), answer_id(quiz, 0, correct=False)

    def submit(index_and_name):
        index, nickname = index_and_name
        return manager.submit_answer(session_id, nickname, correct if index % 2 == 0 else wrong)

    with ThreadPoolExecutor(max_workers=10) as pool:
        accepted = list(pool.map(submit, enumerate(nicknames)))

    assert all(accepted)
    events = recorder.of_type(ResultsUpdatedEvent)
    assert len(events) == len(nicknames)
    sequences = [event.sequence for event in events]
    assert sequences == sorted(sequences)
    assert len(set(sequences)) == len(sequences)

    totals = [sum(p.score for p in event.participants) for event in events]
    steps = [after - before for before, after in zip([0] + totals, totals)]
    assert all(step in (0, 1) for step in steps)
    assert totals[-1] == len(nicknames) // 2
    assert [event.finished for event in events] == [False] * (len(nicknames) - 1) + [True]


def test_concurrent_duplicate_answers_score_once(manager, single_question_quiz):
    session_id = manager.create_session(single_question_quiz.id)
    manager.add_participant(session_id, "P1")
    manager.add_participant(session_id, "P2")
    manager.start_session(session_id)
    correct = answer_id(single_question_quiz, 0, correct=True)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: manager.submit_answer(session_id, "P1", correct), range(16)))

    assert results.count(True) == 1
    scores = {p.nickname: p.score for p in manager.get_session_snapshot(session_id).participants}
    assert scores == {"P1": 1, "P2": 0}

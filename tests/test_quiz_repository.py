import pytest

from conftest import make_question
from livequiz.constants.quiz_constants import DEFAULT_TIME_LIMIT_SECONDS
from livequiz.core.errors import NotFoundError
from livequiz.core.quiz_importer import AnswerDraft, QuestionDraft


def test_add_quiz_assigns_unique_ids(repository):
    first = repository.add_quiz("One", "DEMO", [make_question("Q1", [("a", True), ("b", False)])])
    second = repository.add_quiz("Two", "DEMO", [make_question("Q2", [("c", True), ("d", False)])])

    assert first.id != second.id
    answer_ids = [a.id for quiz in (first, second) for q in quiz.questions for a in q.answers]
    assert len(answer_ids) == len(set(answer_ids))
    question_ids = [q.id for quiz in (first, second) for q in quiz.questions]
    assert len(question_ids) == len(set(question_ids))


def test_add_quiz_applies_default_time_limit_and_strips_text(repository):
    quiz = repository.add_quiz(
        "  Padded  ",
        "DEMO",
        [QuestionDraft(text="  Why?  ", answers=[AnswerDraft(text=" because ", is_correct=True)])],
    )

    assert quiz.name == "Padded"
    question = quiz.questions[0]
    assert question.text == "Why?"
    assert question.answers[0].text == "because"
    assert question.answer_time_seconds == DEFAULT_TIME_LIMIT_SECONDS


@pytest.mark.parametrize(
    "draft, message",
    [
        (QuestionDraft(text=" ", answers=[AnswerDraft("a", True)]), "text must not be empty"),
        (QuestionDraft(text="No answers", answers=[]), "at least one answer"),
        (QuestionDraft(text="No key", answers=[AnswerDraft("a", False)]), "at least one correct"),
        (QuestionDraft(text="Blank", answers=[AnswerDraft(" ", True)]), "Answer text cannot be empty"),
        (QuestionDraft(text="Negative", answers=[AnswerDraft("a", True)], answer_time_seconds=-5), "positive"),
    ],
)
def test_add_quiz_rejects_invalid_questions(repository, draft, message):
    with pytest.raises(ValueError, match=message):
        repository.add_quiz("Broken", "DEMO", [draft])


def test_add_quiz_requires_questions(repository):
    with pytest.raises(ValueError, match="at least one question"):
        repository.add_quiz("Empty", "DEMO", [])


def test_load_quiz_definition_unknown_id(repository):
    with pytest.raises(NotFoundError):
        repository.load_quiz_definition(42)


def test_list_quizzes_filters_by_owner(repository):
    repository.add_quiz("Mine", "DEMO", [make_question("Q", [("a", True)])])
    repository.add_quiz("Theirs", "OTHER", [make_question("Q", [("a", True)])])

    assert [q.name for q in repository.list_quizzes()] == ["Mine", "Theirs"]
    assert [q.name for q in repository.list_quizzes("DEMO")] == ["Mine"]
    assert repository.list_quizzes("NOBODY") == []


def test_load_directory_imports_every_text_file(repository, tmp_path):
    (tmp_path / "b_second.txt").write_text("Q: Two?\nA: yes\nCORRECT: A\n", encoding="utf-8")
    (tmp_path / "a_first.txt").write_text("Q: One?\nA: yes\nB: no\nCORRECT: A\nTIMELIMIT: 5\n", encoding="utf-8")
    (tmp_path / "notes.md").write_text("ignored", encoding="utf-8")

    loaded = repository.load_directory(tmp_path, owner="DEMO")

    assert [quiz.name for quiz in loaded] == ["a_first", "b_second"]
    assert loaded[0].questions[0].answer_time_seconds == 5
    assert repository.load_quiz_definition(loaded[1].id).owner == "DEMO"

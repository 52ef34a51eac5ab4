"""Utilities for importing quizzes from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    A: First answer text
    B: Second answer text
    ...            (any number of answers, lettered A-Z in order; any other
                    "x:" line continues the current section)
    CORRECT: A     (one or more letters, comma separated)
    TIMELIMIT: seconds (optional, the store applies its default)

Example:

    Q: What is $2 + 2$?
    A: 3
    B: 4
    C: 22
    CORRECT: B
    TIMELIMIT: 30

The quiz name is taken from the file name, so `capitals.txt` imports as the
quiz "capitals".
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import string


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


@dataclass(slots=True)
class AnswerDraft:
    text: str
    is_correct: bool


@dataclass(slots=True)
class QuestionDraft:
    """Question as parsed, before the store assigns ids and defaults."""

    text: str
    answers: list[AnswerDraft]
    answer_time_seconds: int | None = None


@dataclass(slots=True)
class ImportedQuiz:
    """Container for imported quiz metadata and questions."""

    source_path: Path
    name: str
    questions: list[QuestionDraft]


_ANSWER_LETTERS = string.ascii_uppercase


def load_quiz_from_file(file_path: Path) -> ImportedQuiz:
    text = file_path.read_text(encoding="utf-8")
    questions = parse_quiz_text(text)
    if not questions:
        raise QuizImportError(f"Quiz file {file_path.name} did not contain any questions.")
    return ImportedQuiz(source_path=file_path, name=file_path.stem, questions=questions)


def parse_quiz_text(text: str) -> list[QuestionDraft]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            # Blank line encountered after content - finalize current block
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    return [_parse_block(block) for block in blocks if block]


def _parse_block(block: str) -> QuestionDraft:
    question_lines: list[str] = []
    answers: dict[str, str] = {}
    correct_letters: set[str] = set()
    time_limit_seconds: int | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            raw_letters = line.split(":", 1)[1]
            correct_letters = {letter.strip().upper() for letter in raw_letters.split(",") if letter.strip()}
            current_section = None
            continue

        if upper.startswith("TIMELIMIT:"):
            time_limit_seconds = _parse_time_limit(line.split(":", 1)[1].strip())
            current_section = None
            continue

        if _is_next_answer_marker(line, len(answers)):
            letter = line[0]
            answers[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in answers:
            answers[current_section] = answers[current_section] + f"\n{line}"
        else:
            raise QuizImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError("Question text missing (Q: ...)")
    if not answers:
        raise QuizImportError(f"Question '{question_text}' defines no answers.")

    letters = list(answers)
    if not correct_letters:
        raise QuizImportError(f"Question '{question_text}' has no CORRECT line.")
    unknown = correct_letters - set(answers)
    if unknown:
        raise QuizImportError(f"CORRECT refers to undefined answers: {', '.join(sorted(unknown))}.")

    drafts = [
        AnswerDraft(text=answers[letter].strip(), is_correct=letter in correct_letters)
        for letter in letters
    ]
    if any(not draft.text for draft in drafts):
        raise QuizImportError("Answer text cannot be empty.")

    return QuestionDraft(
        text=question_text,
        answers=drafts,
        answer_time_seconds=time_limit_seconds,
    )


def _parse_time_limit(raw_value: str) -> int:
    if not raw_value:
        raise QuizImportError("TIMELIMIT must include an integer value.")
    try:
        parsed_value = int(raw_value)
    except ValueError as exc:
        raise QuizImportError("TIMELIMIT must be an integer number of seconds.") from exc
    if parsed_value <= 0:
        raise QuizImportError("TIMELIMIT must be a positive integer.")
    return parsed_value


def _is_next_answer_marker(line: str, answer_count: int) -> bool:
    """True for an uppercase ``X:`` line naming the next unused answer letter."""
    if answer_count >= len(_ANSWER_LETTERS) or len(line) <= 2 or line[1] != ":":
        return False
    return line[0] == _ANSWER_LETTERS[answer_count]

"""Answer scoring and scoreboard snapshots."""

from __future__ import annotations

from livequiz.core.models import Participant, ParticipantView, Question, SubmittedAnswer, utc_now

POINTS_PER_CORRECT_ANSWER = 1


def score_answer(question: Question, answer_id: int) -> SubmittedAnswer | None:
    """Score a chosen answer, or return None if it does not belong to the question."""
    answer = question.find_answer(answer_id)
    if answer is None:
        return None
    return SubmittedAnswer(
        question_id=question.id,
        answer_id=answer.id,
        is_correct=answer.is_correct,
        points=POINTS_PER_CORRECT_ANSWER if answer.is_correct else 0,
        submitted_at=utc_now(),
    )


def ranking(participants: list[Participant]) -> tuple[ParticipantView, ...]:
    """Return participants sorted by score, ties kept in join order."""
    ordered = sorted(participants, key=lambda p: -p.score)
    return tuple(participant.view() for participant in ordered)

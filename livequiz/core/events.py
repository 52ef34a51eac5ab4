"""Events emitted by quiz sessions to their subscribers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

from livequiz.core.models import ParticipantView


@dataclass(frozen=True, slots=True)
class ParticipantsUpdatedEvent:
    """The roster changed. Participants are listed in join order."""

    event_type: ClassVar[str] = "participants_updated"

    session_id: str
    sequence: int
    participants: tuple[ParticipantView, ...]


@dataclass(frozen=True, slots=True)
class ResultsUpdatedEvent:
    """Scores or progress changed. Participants are ranked by score."""

    event_type: ClassVar[str] = "results_updated"

    session_id: str
    sequence: int
    participants: tuple[ParticipantView, ...]
    finished: bool
    question_index: int


QuizEvent = Union[ParticipantsUpdatedEvent, ResultsUpdatedEvent]

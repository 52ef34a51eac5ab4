"""Participant admission for a single quiz session."""

from __future__ import annotations

from livequiz.constants.quiz_constants import MAX_NICKNAME_LENGTH
from livequiz.core.models import Participant, ParticipantView, utc_now


class Roster:
    """Nickname-keyed set of participants admitted to one session.

    Not thread-safe on its own; the owning session serializes access.
    """

    def __init__(self) -> None:
        self._participants: dict[str, Participant] = {}

    def admit(self, nickname: str) -> Participant | None:
        """Admit a participant, or return None if the nickname is unusable or taken."""
        cleaned = normalize_nickname(nickname)
        if cleaned is None or cleaned in self._participants:
            return None
        participant = Participant(nickname=cleaned, joined_at=utc_now())
        self._participants[cleaned] = participant
        return participant

    def get(self, nickname: str) -> Participant | None:
        cleaned = normalize_nickname(nickname)
        if cleaned is None:
            return None
        return self._participants.get(cleaned)

    def participants(self) -> list[Participant]:
        """Return participants in join order."""
        return list(self._participants.values())

    def views(self) -> tuple[ParticipantView, ...]:
        return tuple(participant.view() for participant in self._participants.values())

    def all_answered(self, question_id: int) -> bool:
        """True when at least one participant exists and all of them answered."""
        if not self._participants:
            return False
        return all(p.has_answered(question_id) for p in self._participants.values())

    def __len__(self) -> int:
        return len(self._participants)

    def __contains__(self, nickname: object) -> bool:
        return isinstance(nickname, str) and self.get(nickname) is not None


def normalize_nickname(nickname: str) -> str | None:
    cleaned = nickname.strip()
    if not cleaned or len(cleaned) > MAX_NICKNAME_LENGTH:
        return None
    return cleaned

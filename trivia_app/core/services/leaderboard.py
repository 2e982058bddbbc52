"""Service for ranking completed participants."""

from __future__ import annotations

from dataclasses import dataclass

from trivia_app.constants.quiz_constants import LEADERBOARD_DEFAULT_LIMIT
from trivia_app.core.models import Participant
from trivia_app.core.services.participant_registry import STATUS_COMPLETED, ParticipantRegistry


@dataclass(frozen=True, slots=True)
class LeaderboardRow:
    """Immutable snapshot returned to consumers."""

    position: int
    participant_id: str
    full_name: str
    employee_id: str
    department: str
    total_score: int
    correct_count: int


class Leaderboard:
    """Ranks finished participants by total score; earlier registration breaks ties."""

    def __init__(self, registry: ParticipantRegistry) -> None:
        self._registry = registry

    def ranked_participants(self, department: str = "") -> list[Participant]:
        completed = self._registry.filter_participants(status=STATUS_COMPLETED, department=department)
        return sorted(completed, key=lambda p: (-p.total_score, p.created_at))

    def get_rows(
        self,
        limit: int = LEADERBOARD_DEFAULT_LIMIT,
        department: str = "",
        search: str = "",
    ) -> list[LeaderboardRow]:
        """Return the top rows. Positions stay global to the filtered ranking."""
        term = search.strip().lower()
        rows: list[LeaderboardRow] = []
        for position, participant in enumerate(self.ranked_participants(department), start=1):
            if term and term not in participant.full_name.lower():
                continue
            rows.append(
                LeaderboardRow(
                    position=position,
                    participant_id=participant.id,
                    full_name=participant.full_name,
                    employee_id=participant.employee_id,
                    department=participant.department,
                    total_score=participant.total_score,
                    correct_count=participant.correct_count,
                )
            )
            if len(rows) >= limit:
                break
        return rows

    def position_of(self, participant_id: str) -> int | None:
        """1-based rank among all completed participants, or None if not ranked."""
        for position, participant in enumerate(self.ranked_participants(), start=1):
            if participant.id == participant_id:
                return position
        return None

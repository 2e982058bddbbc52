"""Service for participant registration and persisted quiz results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
from uuid import uuid4

from trivia_app.constants.quiz_constants import PARTICIPANTS_PAGE_SIZE
from trivia_app.core.models import Participant, StoredAnswer

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_IN_PROGRESS = "in_progress"


@dataclass(frozen=True, slots=True)
class ParticipantPage:
    """One page of a filtered participant listing."""

    items: list[Participant]
    total_count: int
    page: int
    page_size: int


@dataclass(frozen=True, slots=True)
class ParticipantStats:
    total: int
    completed: int
    average_score: int


class ParticipantRegistry:
    """Registers participants and stores their answers and final results."""

    def __init__(self) -> None:
        self._participants: dict[str, Participant] = {}
        self._answers: list[StoredAnswer] = []

    def register(self, full_name: str, employee_id: str, department: str) -> Participant:
        """Register a participant. Every field is required."""
        fields = {
            "Full name": full_name.strip(),
            "Employee ID": employee_id.strip(),
            "Department": department.strip(),
        }
        missing = [label for label, value in fields.items() if not value]
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}.")

        participant = Participant(
            id=uuid4().hex,
            full_name=fields["Full name"],
            employee_id=fields["Employee ID"],
            department=fields["Department"],
            created_at=datetime.utcnow(),
        )
        self._participants[participant.id] = participant
        logger.info("Registered participant %s (%s)", participant.id, participant.full_name)
        return participant

    def get(self, participant_id: str) -> Participant:
        participant = self._participants.get(participant_id)
        if participant is None:
            raise KeyError(f"Participant '{participant_id}' not found")
        return participant

    def has_participant(self, participant_id: str) -> bool:
        return participant_id in self._participants

    # --- Result persistence ---

    def record_answer(
        self,
        participant_id: str,
        question_index: int,
        selected_option: str,
        is_correct: bool,
        elapsed_ms: int,
        points_earned: int,
    ) -> StoredAnswer:
        participant = self.get(participant_id)
        stored = StoredAnswer(
            participant_id=participant_id,
            quiz_id=participant.quiz_id,
            question_index=question_index,
            selected_option=selected_option,
            is_correct=is_correct,
            elapsed_ms=elapsed_ms,
            points_earned=points_earned,
            recorded_at=datetime.utcnow(),
        )
        self._answers.append(stored)
        return stored

    def record_final_result(
        self,
        participant_id: str,
        total_score: int,
        correct_count: int,
        total_questions: int,
    ) -> Participant:
        participant = self.get(participant_id)
        participant.total_score = total_score
        participant.correct_count = correct_count
        participant.answers_count = total_questions
        participant.completed = True
        return participant

    def answers_for(self, participant_id: str) -> list[StoredAnswer]:
        return [answer for answer in self._answers if answer.participant_id == participant_id]

    def discard_answers(self, participant_id: str) -> int:
        """Drop every stored answer of a participant. Returns how many were removed."""
        kept = [answer for answer in self._answers if answer.participant_id != participant_id]
        removed = len(self._answers) - len(kept)
        self._answers = kept
        return removed

    def begin_attempt(self, participant_id: str, quiz_id: str) -> Participant:
        """Start a fresh attempt: earlier answers go, later ones are tagged with ``quiz_id``."""
        participant = self.get(participant_id)
        if participant.completed:
            raise RuntimeError(f"Participant '{participant_id}' has already completed the quiz.")
        removed = self.discard_answers(participant_id)
        if removed:
            logger.info("Discarded %d answers of participant %s before a restart", removed, participant_id)
        participant.quiz_id = quiz_id
        return participant

    # --- Admin queries ---

    def all_participants(self) -> list[Participant]:
        return list(self._participants.values())

    def filter_participants(
        self,
        search: str = "",
        status: str = "",
        department: str = "",
    ) -> list[Participant]:
        term = search.strip().lower()
        results = []
        for participant in self._participants.values():
            if term and term not in participant.full_name.lower() and term not in participant.employee_id.lower():
                continue
            if status == STATUS_COMPLETED and not participant.completed:
                continue
            if status == STATUS_IN_PROGRESS and participant.completed:
                continue
            if department and participant.department != department:
                continue
            results.append(participant)
        return results

    def list_participants(
        self,
        page: int = 1,
        search: str = "",
        status: str = "",
        department: str = "",
        page_size: int = PARTICIPANTS_PAGE_SIZE,
    ) -> ParticipantPage:
        """Return the newest participants first, one page at a time."""
        if page < 1:
            raise ValueError("Page numbers start at 1.")
        matches = sorted(
            self.filter_participants(search=search, status=status, department=department),
            key=lambda p: p.created_at,
            reverse=True,
        )
        offset = (page - 1) * page_size
        return ParticipantPage(
            items=matches[offset:offset + page_size],
            total_count=len(matches),
            page=page,
            page_size=page_size,
        )

    def stats(self) -> ParticipantStats:
        completed = [p for p in self._participants.values() if p.completed]
        average = round(sum(p.total_score for p in completed) / len(completed)) if completed else 0
        return ParticipantStats(
            total=len(self._participants),
            completed=len(completed),
            average_score=average,
        )

    def departments(self, completed_only: bool = False) -> list[str]:
        return sorted(
            {
                p.department
                for p in self._participants.values()
                if p.department and (p.completed or not completed_only)
            }
        )

    def reset(self) -> None:
        """Delete every participant and stored answer."""
        logger.warning(
            "Resetting participant data (%d participants, %d answers)",
            len(self._participants),
            len(self._answers),
        )
        self._answers.clear()
        self._participants.clear()

"""Business logic shared by the participant and admin HTTP endpoints."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Callable

from trivia_app.constants.quiz_constants import LEADERBOARD_DEFAULT_LIMIT, RESULT_DISPLAY_SECONDS
from trivia_app.core.countdown import Scheduler
from trivia_app.core.models import AnswerRecord, Participant, Question, Quiz, SessionSummary
from trivia_app.core.quiz_exporter import serialize_quiz
from trivia_app.core.quiz_importer import parse_quiz_text
from trivia_app.core.results_exporter import export_filename, serialize_participants
from trivia_app.core.services.leaderboard import Leaderboard, LeaderboardRow
from trivia_app.core.services.participant_registry import (
    ParticipantPage,
    ParticipantRegistry,
    ParticipantStats,
)
from trivia_app.core.services.quiz_repository import QuizRepository
from trivia_app.core.services.quiz_session import QuizSessionController, SessionView

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ParticipantResult:
    """What the results page shows after a finished session."""

    participant: Participant
    summary: SessionSummary
    position: int | None


class TriviaManager:
    """Facade for quiz services: Repository, Participants, Leaderboard and live sessions."""

    def __init__(
        self,
        repository: QuizRepository | None = None,
        registry: ParticipantRegistry | None = None,
        scheduler_factory: Callable[[], Scheduler] = asyncio.get_running_loop,
        result_display_seconds: float = RESULT_DISPLAY_SECONDS,
    ) -> None:
        self._repository = repository or QuizRepository()
        self._registry = registry or ParticipantRegistry()
        self._leaderboard = Leaderboard(self._registry)
        self._scheduler_factory = scheduler_factory
        self._result_display_seconds = result_display_seconds
        self._sessions: dict[str, QuizSessionController] = {}

    @property
    def repository(self) -> QuizRepository:
        return self._repository

    @property
    def registry(self) -> ParticipantRegistry:
        return self._registry

    # --- Quiz Repository Delegation ---

    def get_active_quiz(self) -> Quiz:
        return self._repository.get_active_quiz()

    def list_quizzes(self) -> list[Quiz]:
        return self._repository.list_quizzes()

    def get_quiz(self, quiz_id: str) -> Quiz:
        return self._repository.get_quiz(quiz_id)

    def create_quiz(self, **fields) -> Quiz:
        return self._repository.create_quiz(**fields)

    def update_quiz(self, quiz_id: str, **changes) -> Quiz:
        return self._repository.update_quiz(quiz_id, **changes)

    def delete_quiz(self, quiz_id: str) -> list[Quiz]:
        return self._repository.delete_quiz(quiz_id)

    def set_active_quiz(self, quiz_id: str) -> Quiz:
        return self._repository.set_active_quiz(quiz_id)

    def duplicate_quiz(self, quiz_id: str) -> Quiz:
        return self._repository.duplicate_quiz(quiz_id)

    def add_question(self, quiz_id: str, question: Question) -> Quiz:
        return self._repository.add_question(quiz_id, question)

    def update_question(self, quiz_id: str, index: int, question: Question) -> Quiz:
        return self._repository.update_question(quiz_id, index, question)

    def delete_question(self, quiz_id: str, index: int) -> Quiz:
        return self._repository.delete_question(quiz_id, index)

    def move_question(self, quiz_id: str, index: int, direction: int) -> Quiz:
        return self._repository.move_question(quiz_id, index, direction)

    def reset_questions(self, quiz_id: str) -> Quiz:
        return self._repository.reset_questions(quiz_id)

    def import_quiz_text(self, text: str) -> Quiz:
        return self._repository.create_from_import(parse_quiz_text(text))

    def export_quiz_text(self, quiz_id: str) -> str:
        return serialize_quiz(self._repository.get_quiz(quiz_id))

    # --- Participant Delegation ---

    def register_participant(self, full_name: str, employee_id: str, department: str) -> Participant:
        return self._registry.register(full_name, employee_id, department)

    def get_participant(self, participant_id: str) -> Participant:
        return self._registry.get(participant_id)

    def list_participants(self, **filters) -> ParticipantPage:
        return self._registry.list_participants(**filters)

    def get_stats(self) -> ParticipantStats:
        return self._registry.stats()

    def get_departments(self, completed_only: bool = False) -> list[str]:
        return self._registry.departments(completed_only=completed_only)

    def reset_participants(self) -> None:
        for controller in self._sessions.values():
            controller.abandon()
        self._sessions.clear()
        self._registry.reset()

    def export_participants_csv(self, status: str = "", department: str = "") -> tuple[str, str]:
        """Return (filename, csv text) for participants ordered by score."""
        participants = sorted(
            self._registry.filter_participants(status=status, department=department),
            key=lambda p: (-p.total_score, p.created_at),
        )
        total_questions = len(self._repository.get_active_quiz().questions)
        return export_filename(), serialize_participants(participants, total_questions)

    # --- Session Delegation ---

    def start_session(self, participant_id: str) -> SessionView:
        """Start (or restart an unfinished run of) the active quiz for a registered participant."""
        participant = self._registry.get(participant_id)
        if participant.completed:
            raise RuntimeError("This participant has already completed the quiz.")
        previous = self._sessions.pop(participant_id, None)
        if previous is not None:
            previous.abandon()

        controller = QuizSessionController(
            participant_id=participant_id,
            quiz_source=self._repository,
            result_store=self._registry,
            scheduler=self._scheduler_factory(),
            result_display_seconds=self._result_display_seconds,
        )
        # Raises QuizConfigurationError before anything is stored.
        controller.start()
        # This run persists its first answer on a later loop iteration.
        self._registry.begin_attempt(participant_id, controller.quiz.id)
        self._sessions[participant_id] = controller
        return controller.get_view()

    def get_session(self, participant_id: str) -> QuizSessionController:
        controller = self._sessions.get(participant_id)
        if controller is None:
            raise KeyError(f"No quiz session for participant '{participant_id}'")
        return controller

    def get_session_view(self, participant_id: str) -> SessionView:
        return self.get_session(participant_id).get_view()

    def submit_answer(self, participant_id: str, option_key: str) -> tuple[AnswerRecord | None, SessionView]:
        controller = self.get_session(participant_id)
        record = controller.select_option(option_key)
        return record, controller.get_view()

    def abandon_session(self, participant_id: str) -> None:
        controller = self._sessions.pop(participant_id, None)
        if controller is not None:
            controller.abandon()

    def shutdown(self) -> None:
        for controller in self._sessions.values():
            controller.abandon()
        self._sessions.clear()

    def get_result(self, participant_id: str) -> ParticipantResult:
        """Summary of a finished session. The local summary is used even if persisting it failed."""
        controller = self.get_session(participant_id)
        summary = controller.summary
        if summary is None:
            raise RuntimeError("The quiz session has not finished yet.")
        return ParticipantResult(
            participant=self._registry.get(participant_id),
            summary=summary,
            position=self._leaderboard.position_of(participant_id),
        )

    # --- Leaderboard Delegation ---

    def get_leaderboard(
        self,
        limit: int = LEADERBOARD_DEFAULT_LIMIT,
        department: str = "",
        search: str = "",
    ) -> list[LeaderboardRow]:
        return self._leaderboard.get_rows(limit=limit, department=department, search=search)

    def get_leaderboard_size(self, department: str = "") -> int:
        return len(self._leaderboard.ranked_participants(department))

"""Service that drives one participant through the active quiz."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import inspect
import logging
from typing import Any, Callable, Protocol

from trivia_app.constants.quiz_constants import RESULT_DISPLAY_SECONDS, TIMEOUT_SENTINEL
from trivia_app.core.config_resolver import QuestionConfig, resolve_question_config
from trivia_app.core.countdown import CountdownTimer, ScheduledHandle, Scheduler
from trivia_app.core.models import AnswerRecord, Question, Quiz, SessionSummary
from trivia_app.core.scoring import SessionScore, calculate_score

logger = logging.getLogger(__name__)


class QuizConfigurationError(RuntimeError):
    """Raised when the active quiz cannot be played (e.g. it has no questions)."""


class QuizSource(Protocol):
    def get_active_quiz(self) -> Quiz: ...


class ResultStore(Protocol):
    """Persistence collaborator. Methods may return an awaitable."""

    def record_answer(
        self,
        participant_id: str,
        question_index: int,
        selected_option: str,
        is_correct: bool,
        elapsed_ms: int,
        points_earned: int,
    ) -> Any: ...

    def record_final_result(
        self,
        participant_id: str,
        total_score: int,
        correct_count: int,
        total_questions: int,
    ) -> Any: ...


class SessionStatus(str, Enum):
    READY = "ready"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class QuestionPhase(str, Enum):
    UNANSWERED = "unanswered"
    ANSWERED = "answered"
    DISPLAYING = "displaying"
    ADVANCING = "advancing"


@dataclass(frozen=True, slots=True)
class SessionView:
    """Read-only snapshot of a session for the participant page."""

    status: SessionStatus
    phase: QuestionPhase | None
    question_index: int
    total_questions: int
    remaining_seconds: int
    time_limit_seconds: int
    total_score: int
    correct_count: int
    question: Question | None
    last_answer: AnswerRecord | None
    reveal_correct_answer: bool


class QuizSessionController:
    """Owns the question sequence, the countdown and the score of one session."""

    def __init__(
        self,
        participant_id: str,
        quiz_source: QuizSource,
        result_store: ResultStore,
        scheduler: Scheduler,
        on_complete: Callable[[SessionSummary], None] | None = None,
        result_display_seconds: float = RESULT_DISPLAY_SECONDS,
    ) -> None:
        self._participant_id = participant_id
        self._quiz_source = quiz_source
        self._result_store = result_store
        self._scheduler = scheduler
        self._on_complete = on_complete
        self._result_display_seconds = result_display_seconds

        self._status = SessionStatus.READY
        self._quiz: Quiz | None = None
        self._questions: tuple[Question, ...] = ()
        self._index: int = 0
        self._phase: QuestionPhase | None = None
        self._config: QuestionConfig | None = None
        self._question_started_at: float | None = None
        self._advance_handle: ScheduledHandle | None = None
        self._score = SessionScore()
        self._summary: SessionSummary | None = None
        self._timer = CountdownTimer(0, scheduler, on_expire=self._handle_timeout)

    @property
    def participant_id(self) -> str:
        return self._participant_id

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def phase(self) -> QuestionPhase | None:
        return self._phase

    @property
    def question_index(self) -> int:
        return self._index

    @property
    def quiz(self) -> Quiz | None:
        return self._quiz

    @property
    def summary(self) -> SessionSummary | None:
        return self._summary

    @property
    def timer(self) -> CountdownTimer:
        return self._timer

    def get_answers(self) -> list[AnswerRecord]:
        return list(self._score.answers)

    def get_current_question(self) -> Question | None:
        if self._status is not SessionStatus.ACTIVE:
            return None
        return self._questions[self._index]

    # --- Lifecycle ---

    def start(self) -> None:
        """Load the active quiz and present its first question."""
        if self._status is not SessionStatus.READY:
            raise RuntimeError("Session has already been started.")
        quiz = self._quiz_source.get_active_quiz()
        if not quiz.questions:
            raise QuizConfigurationError(f"Quiz '{quiz.name}' has no questions.")

        self._quiz = quiz
        self._questions = tuple(quiz.questions)
        self._status = SessionStatus.ACTIVE
        logger.info(
            "Participant %s started quiz %s (%d questions)",
            self._participant_id,
            quiz.id,
            len(self._questions),
        )
        self._begin_question()

    def abandon(self) -> None:
        """Tear the session down so no timer or advance callback fires afterwards."""
        self._timer.stop()
        self._cancel_advance()
        if self._status in (SessionStatus.READY, SessionStatus.ACTIVE):
            self._status = SessionStatus.ABANDONED
            logger.info("Participant %s abandoned the quiz at question %d", self._participant_id, self._index)

    # --- Answer events ---

    def select_option(self, option_key: str) -> AnswerRecord | None:
        """Answer the current question. Returns None when the answer is ignored."""
        if self._status is not SessionStatus.ACTIVE or self._phase is not QuestionPhase.UNANSWERED:
            logger.debug(
                "Ignoring selection %r from %s: question %d is not awaiting an answer",
                option_key,
                self._participant_id,
                self._index,
            )
            return None

        question = self._questions[self._index]
        normalized = option_key.strip().upper()
        if normalized not in question.option_keys():
            raise ValueError(f"'{option_key}' is not an option of the current question.")
        return self._process_answer(normalized)

    def _handle_timeout(self) -> None:
        if self._status is SessionStatus.ACTIVE and self._phase is QuestionPhase.UNANSWERED:
            self._process_answer(TIMEOUT_SENTINEL)

    def _process_answer(self, selected_option: str) -> AnswerRecord:
        self._timer.stop()
        self._phase = QuestionPhase.ANSWERED

        question = self._questions[self._index]
        config = self._config or resolve_question_config(question, self._quiz)
        started_at = self._question_started_at if self._question_started_at is not None else self._scheduler.time()
        elapsed_ms = max(0, round((self._scheduler.time() - started_at) * 1000))
        is_correct = selected_option == question.correct_option

        points = calculate_score(
            is_correct,
            elapsed_ms,
            config.time_limit_ms,
            config.base_points,
            config.speed_bonus_pct,
        )
        record = AnswerRecord(
            question_index=self._index,
            selected_option=selected_option,
            is_correct=is_correct,
            elapsed_ms=elapsed_ms,
            points_earned=points,
        )
        self._score.record(record)
        logger.debug(
            "Participant %s question %d: %s correct=%s %dms -> %d pts",
            self._participant_id,
            self._index,
            selected_option,
            is_correct,
            elapsed_ms,
            points,
        )

        self._dispatch(
            "answer",
            self._result_store.record_answer,
            self._participant_id,
            record.question_index,
            record.selected_option,
            record.is_correct,
            record.elapsed_ms,
            record.points_earned,
        )

        self._phase = QuestionPhase.DISPLAYING
        self._advance_handle = self._scheduler.call_later(self._result_display_seconds, self._advance)
        return record

    # --- Sequencing ---

    def _begin_question(self) -> None:
        question = self._questions[self._index]
        self._config = resolve_question_config(question, self._quiz)
        self._phase = QuestionPhase.UNANSWERED
        self._timer.reset(self._config.time_limit_seconds)
        self._question_started_at = self._scheduler.time()
        self._timer.start()

    def _advance(self) -> None:
        self._advance_handle = None
        if self._status is not SessionStatus.ACTIVE or self._phase is not QuestionPhase.DISPLAYING:
            return
        self._phase = QuestionPhase.ADVANCING
        if self._index + 1 < len(self._questions):
            self._index += 1
            self._begin_question()
        else:
            self._finalize()

    def _finalize(self) -> None:
        self._timer.stop()
        self._index = len(self._questions)
        self._phase = None
        self._status = SessionStatus.COMPLETED
        summary = self._score.summary(len(self._questions))
        self._summary = summary
        logger.info(
            "Participant %s finished with %d points (%d/%d correct)",
            self._participant_id,
            summary.total_score,
            summary.correct_count,
            summary.total_questions,
        )

        self._dispatch(
            "final result",
            self._result_store.record_final_result,
            self._participant_id,
            summary.total_score,
            summary.correct_count,
            summary.total_questions,
        )
        if self._on_complete is not None:
            self._on_complete(summary)

    def _cancel_advance(self) -> None:
        if self._advance_handle is not None:
            self._advance_handle.cancel()
            self._advance_handle = None

    # --- Persistence ---

    def _dispatch(self, label: str, func: Callable[..., Any], *args: Any) -> None:
        """Run a persistence call on the next loop iteration without waiting for it."""
        self._scheduler.call_soon(self._persist, label, func, args)

    def _persist(self, label: str, func: Callable[..., Any], args: tuple[Any, ...]) -> None:
        if self._status is SessionStatus.ABANDONED:
            logger.debug("Dropping %s of abandoned session for participant %s", label, self._participant_id)
            return
        try:
            result = func(*args)
        except Exception:
            logger.exception("Failed to persist %s for participant %s", label, self._participant_id)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            task.add_done_callback(lambda done: self._log_persist_failure(label, done))

    def _log_persist_failure(self, label: str, task: asyncio.Future) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Failed to persist %s for participant %s",
                label,
                self._participant_id,
                exc_info=exc,
            )

    # --- Views ---

    def get_view(self) -> SessionView:
        question = self.get_current_question()
        last_answer = self._score.answers[-1] if self._score.answers else None
        reveal = bool(self._quiz.show_correct_answer) if self._quiz is not None else True
        return SessionView(
            status=self._status,
            phase=self._phase,
            question_index=self._index,
            total_questions=len(self._questions),
            remaining_seconds=self._timer.remaining,
            time_limit_seconds=self._config.time_limit_seconds if self._config else 0,
            total_score=self._score.total_score,
            correct_count=self._score.correct_count,
            question=question,
            last_answer=last_answer,
            reveal_correct_answer=reveal,
        )

"""Domain models for the trivia application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from trivia_app.constants.quiz_constants import (
    DEFAULT_POINTS,
    DEFAULT_SPEED_BONUS_PCT,
    DEFAULT_TIME_LIMIT_SECONDS,
)


@dataclass(frozen=True, slots=True)
class QuestionOption:
    """One selectable answer, keyed by a single letter A-D."""

    key: str
    text: str


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question. Immutable for the lifetime of a session."""

    id: int
    text: str
    options: tuple[QuestionOption, ...]
    correct_option: str
    time_limit_seconds: int | None = DEFAULT_TIME_LIMIT_SECONDS
    points: int | None = DEFAULT_POINTS
    speed_bonus: int | None = None  # None means "use the quiz default"

    def option_keys(self) -> tuple[str, ...]:
        return tuple(option.key for option in self.options)


@dataclass(frozen=True, slots=True)
class Quiz:
    """Named, ordered list of questions plus quiz-wide defaults."""

    id: str
    name: str
    questions: tuple[Question, ...] = ()
    description: str = ""
    speed_bonus: int | None = DEFAULT_SPEED_BONUS_PCT
    show_correct_answer: bool = True
    is_active: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True, slots=True)
class AnswerRecord:
    """Outcome of one question for one participant. Never mutated once created."""

    question_index: int
    selected_option: str
    is_correct: bool
    elapsed_ms: int
    points_earned: int

    def to_dict(self) -> dict[str, object]:
        return {
            "question_index": self.question_index,
            "selected_option": self.selected_option,
            "is_correct": self.is_correct,
            "elapsed_ms": self.elapsed_ms,
            "points_earned": self.points_earned,
        }


@dataclass(frozen=True, slots=True)
class SessionSummary:
    """Final result handed to the results and leaderboard views."""

    total_score: int
    correct_count: int
    total_questions: int
    answers: tuple[AnswerRecord, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "total_score": self.total_score,
            "correct_count": self.correct_count,
            "total_questions": self.total_questions,
            "answers": [answer.to_dict() for answer in self.answers],
        }


@dataclass(slots=True)
class Participant:
    """Registered participant and the final result of their session."""

    id: str
    full_name: str
    employee_id: str
    department: str
    created_at: datetime
    total_score: int = 0
    correct_count: int = 0
    answers_count: int = 0
    completed: bool = False
    quiz_id: str | None = None


@dataclass(frozen=True, slots=True)
class StoredAnswer:
    """Answer record as persisted for a participant."""

    participant_id: str
    quiz_id: str | None
    question_index: int
    selected_option: str
    is_correct: bool
    elapsed_ms: int
    points_earned: int
    recorded_at: datetime

"""Speed-weighted scoring and the running totals of a quiz session."""

from __future__ import annotations

from dataclasses import dataclass, field
import math

from trivia_app.core.models import AnswerRecord, SessionSummary


def calculate_score(
    is_correct: bool,
    elapsed_ms: float,
    time_limit_ms: float,
    base_points: int,
    speed_bonus_pct: float,
) -> int:
    """
    Points for a single answer.

    A correct answer earns ``base_points`` plus a speed bonus of up to
    ``speed_bonus_pct`` percent of the base, decaying linearly to nothing at
    the time limit. Answers processed after the limit keep the base points but
    never receive a negative bonus. Wrong answers and timeouts earn 0.
    """
    if not is_correct:
        return 0
    if time_limit_ms <= 0:
        return int(base_points)
    time_ratio = max(0.0, 1 - (elapsed_ms / time_limit_ms))
    bonus = math.floor(base_points * (speed_bonus_pct / 100) * time_ratio)
    return int(base_points + bonus)


@dataclass(slots=True)
class SessionScore:
    """Cumulative score, correct count and answer log of one session."""

    total_score: int = 0
    correct_count: int = 0
    answers: list[AnswerRecord] = field(default_factory=list)

    def has_answered(self, question_index: int) -> bool:
        return any(answer.question_index == question_index for answer in self.answers)

    def record(self, answer: AnswerRecord) -> None:
        if self.has_answered(answer.question_index):
            raise ValueError(f"Question {answer.question_index} has already been scored.")
        self.answers.append(answer)
        self.total_score += answer.points_earned
        if answer.is_correct:
            self.correct_count += 1

    def summary(self, total_questions: int) -> SessionSummary:
        return SessionSummary(
            total_score=self.total_score,
            correct_count=self.correct_count,
            total_questions=total_questions,
            answers=tuple(self.answers),
        )

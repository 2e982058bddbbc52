"""Resolve the effective scoring configuration of a question within its quiz.

An explicit question value wins, then the quiz-wide default, then the
application default. An explicit speed bonus of zero is a real override and
never falls through.
"""

from __future__ import annotations

from dataclasses import dataclass

from trivia_app.constants.quiz_constants import (
    DEFAULT_POINTS,
    DEFAULT_SPEED_BONUS_PCT,
    DEFAULT_TIME_LIMIT_SECONDS,
)
from trivia_app.core.models import Question, Quiz


@dataclass(frozen=True, slots=True)
class QuestionConfig:
    """Effective settings for one question."""

    time_limit_seconds: int
    base_points: int
    speed_bonus_pct: int

    @property
    def time_limit_ms(self) -> int:
        return self.time_limit_seconds * 1000


def resolve_question_config(question: Question, quiz: Quiz | None = None) -> QuestionConfig:
    base_points = question.points or DEFAULT_POINTS

    if question.speed_bonus is not None:
        speed_bonus = question.speed_bonus
    elif quiz is not None and quiz.speed_bonus is not None:
        speed_bonus = quiz.speed_bonus
    else:
        speed_bonus = DEFAULT_SPEED_BONUS_PCT

    if question.time_limit_seconds is not None:
        time_limit = question.time_limit_seconds
    else:
        time_limit = DEFAULT_TIME_LIMIT_SECONDS

    return QuestionConfig(
        time_limit_seconds=time_limit,
        base_points=base_points,
        speed_bonus_pct=speed_bonus,
    )

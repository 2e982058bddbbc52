from __future__ import annotations

from dataclasses import dataclass, field
import heapq
import itertools
from typing import Any, Callable

import pytest

from trivia_app.core.models import Question, QuestionOption, Quiz


@dataclass(order=True)
class _ManualHandle:
    when: float
    seq: int
    callback: Callable[..., Any] = field(compare=False)
    args: tuple[Any, ...] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic stand-in for an asyncio loop; time only moves on ``advance``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[_ManualHandle] = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> _ManualHandle:
        handle = _ManualHandle(self.now + max(0.0, delay), next(self._seq), callback, args)
        heapq.heappush(self._queue, handle)
        return handle

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> _ManualHandle:
        return self.call_later(0, callback, *args)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._queue and self._queue[0].when <= target:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = max(self.now, handle.when)
            handle.callback(*handle.args)
        self.now = target

    def run_pending(self) -> None:
        self.advance(0)

    def pending_count(self) -> int:
        return sum(1 for handle in self._queue if not handle.cancelled)


class RecordingStore:
    """Result store that remembers every call in order."""

    def __init__(self, fail_answers: bool = False, fail_final: bool = False) -> None:
        self.fail_answers = fail_answers
        self.fail_final = fail_final
        self.events: list[tuple[str, tuple[Any, ...]]] = []

    def record_answer(self, *args: Any) -> None:
        self.events.append(("answer", args))
        if self.fail_answers:
            raise ConnectionError("answers table unavailable")

    def record_final_result(self, *args: Any) -> None:
        self.events.append(("final", args))
        if self.fail_final:
            raise ConnectionError("participants table unavailable")

    def calls(self, kind: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.events if name == kind]


class StaticQuizSource:
    def __init__(self, quiz: Quiz) -> None:
        self.quiz = quiz

    def get_active_quiz(self) -> Quiz:
        return self.quiz


def make_question(
    question_id: int = 1,
    correct: str = "A",
    time_limit_seconds: int | None = 30,
    points: int | None = 100,
    speed_bonus: int | None = None,
    text: str = "Which one?",
) -> Question:
    return Question(
        id=question_id,
        text=text,
        options=tuple(QuestionOption(key=key, text=f"Option {key}") for key in ("A", "B", "C", "D")),
        correct_option=correct,
        time_limit_seconds=time_limit_seconds,
        points=points,
        speed_bonus=speed_bonus,
    )


def make_quiz(questions: list[Question] | None = None, speed_bonus: int | None = 50, **kwargs: Any) -> Quiz:
    if questions is None:
        questions = [make_question(i, correct="ABCD"[i % 4]) for i in range(3)]
    return Quiz(id="quiz-test", name="Test quiz", questions=tuple(questions), speed_bonus=speed_bonus, **kwargs)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()

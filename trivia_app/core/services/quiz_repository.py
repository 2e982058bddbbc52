"""Service for managing stored quizzes and their questions."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
import logging
from pathlib import Path
from typing import Iterable

from trivia_app.constants.quiz_constants import (
    DEFAULT_POINTS,
    DEFAULT_SPEED_BONUS_PCT,
    DEFAULT_TIME_LIMIT_SECONDS,
    MAX_POINTS,
    MAX_SPEED_BONUS_PCT,
    MAX_TIME_LIMIT_SECONDS,
    MIN_POINTS,
    MIN_SPEED_BONUS_PCT,
    MIN_TIME_LIMIT_SECONDS,
    OPTION_KEYS,
)
from trivia_app.core.models import Question, QuestionOption, Quiz
from trivia_app.core.quiz_importer import ImportedQuiz, QuizImportError, load_quiz_from_file

logger = logging.getLogger(__name__)

DEFAULT_QUIZ_PATH = Path(__file__).resolve().parent.parent.parent / "data" / "default_quiz.txt"
DEFAULT_QUIZ_ID = "default"


class QuizRepository:
    """
    Stores quizzes in creation order and keeps exactly one of them active.

    Quizzes and questions are immutable values; every edit swaps in a new
    ``Quiz`` so sessions already holding the previous one keep a stable view.
    """

    def __init__(self, default_quiz: Quiz | None = None, seed_default: bool = True) -> None:
        self._quizzes: list[Quiz] = []
        self._quiz_counter: int = 0
        self._question_counter: int = 0
        self._default_quiz = default_quiz or load_default_quiz()
        if seed_default:
            seeded = replace(
                self._default_quiz,
                questions=tuple(self._prepare_question(q) for q in self._default_quiz.questions),
                is_active=True,
            )
            self._quizzes.append(seeded)

    # --- Queries ---

    def list_quizzes(self) -> list[Quiz]:
        return list(self._quizzes)

    def get_quiz(self, quiz_id: str) -> Quiz:
        return self._quizzes[self._index_of(quiz_id)]

    def get_active_quiz(self) -> Quiz:
        """Return the active quiz, falling back to the first stored quiz or the default one."""
        for quiz in self._quizzes:
            if quiz.is_active:
                return quiz
        if self._quizzes:
            return self._quizzes[0]
        return self._default_quiz

    # --- Quiz lifecycle ---

    def create_quiz(
        self,
        name: str,
        description: str = "",
        speed_bonus: int | None = DEFAULT_SPEED_BONUS_PCT,
        show_correct_answer: bool = True,
        questions: Iterable[Question] = (),
    ) -> Quiz:
        quiz = Quiz(
            id=self._next_quiz_id(),
            name=self._validate_name(name),
            description=description.strip(),
            speed_bonus=self._validate_quiz_speed_bonus(speed_bonus),
            show_correct_answer=bool(show_correct_answer),
            questions=tuple(self._prepare_question(q) for q in questions),
            is_active=not self._quizzes,
            created_at=datetime.utcnow(),
        )
        self._quizzes.append(quiz)
        logger.info("Created quiz %s (%s)", quiz.id, quiz.name)
        return quiz

    def create_from_import(self, imported: ImportedQuiz) -> Quiz:
        return self.create_quiz(
            name=imported.name,
            description=imported.description,
            speed_bonus=imported.speed_bonus,
            show_correct_answer=imported.show_correct_answer,
            questions=imported.questions,
        )

    def update_quiz(
        self,
        quiz_id: str,
        name: str | None = None,
        description: str | None = None,
        speed_bonus: int | None = None,
        show_correct_answer: bool | None = None,
    ) -> Quiz:
        index = self._index_of(quiz_id)
        quiz = self._quizzes[index]
        updated = replace(
            quiz,
            name=self._validate_name(name) if name is not None else quiz.name,
            description=description.strip() if description is not None else quiz.description,
            speed_bonus=(
                self._validate_quiz_speed_bonus(speed_bonus) if speed_bonus is not None else quiz.speed_bonus
            ),
            show_correct_answer=(
                bool(show_correct_answer) if show_correct_answer is not None else quiz.show_correct_answer
            ),
        )
        self._quizzes[index] = updated
        return updated

    def delete_quiz(self, quiz_id: str) -> list[Quiz]:
        """Remove a quiz. When the active one goes, the first remaining quiz takes over."""
        index = self._index_of(quiz_id)
        removed = self._quizzes.pop(index)
        if self._quizzes and not any(quiz.is_active for quiz in self._quizzes):
            self._quizzes[0] = replace(self._quizzes[0], is_active=True)
            logger.info("Quiz %s deleted; %s is now active", removed.id, self._quizzes[0].id)
        return self.list_quizzes()

    def set_active_quiz(self, quiz_id: str) -> Quiz:
        self._index_of(quiz_id)
        self._quizzes = [replace(quiz, is_active=quiz.id == quiz_id) for quiz in self._quizzes]
        return self.get_quiz(quiz_id)

    def duplicate_quiz(self, quiz_id: str) -> Quiz:
        source = self.get_quiz(quiz_id)
        copy = replace(
            source,
            id=self._next_quiz_id(),
            name=f"{source.name} (Copy)",
            questions=tuple(self._prepare_question(q) for q in source.questions),
            is_active=False,
            created_at=datetime.utcnow(),
        )
        self._quizzes.append(copy)
        return copy

    # --- Questions ---

    def add_question(self, quiz_id: str, question: Question) -> Quiz:
        index = self._index_of(quiz_id)
        quiz = self._quizzes[index]
        prepared = self._prepare_question(question)
        return self._store(index, replace(quiz, questions=quiz.questions + (prepared,)))

    def update_question(self, quiz_id: str, question_index: int, question: Question) -> Quiz:
        index = self._index_of(quiz_id)
        quiz = self._quizzes[index]
        self._check_question_index(quiz, question_index)
        # Preserve the original ID
        prepared = replace(self._prepare_question(question), id=quiz.questions[question_index].id)
        questions = list(quiz.questions)
        questions[question_index] = prepared
        return self._store(index, replace(quiz, questions=tuple(questions)))

    def delete_question(self, quiz_id: str, question_index: int) -> Quiz:
        index = self._index_of(quiz_id)
        quiz = self._quizzes[index]
        self._check_question_index(quiz, question_index)
        questions = list(quiz.questions)
        questions.pop(question_index)
        return self._store(index, replace(quiz, questions=tuple(questions)))

    def move_question(self, quiz_id: str, question_index: int, direction: int) -> Quiz:
        """Swap a question with its neighbour. Moving past either end leaves the quiz unchanged."""
        if direction not in (-1, 1):
            raise ValueError("Direction must be -1 (up) or 1 (down).")
        index = self._index_of(quiz_id)
        quiz = self._quizzes[index]
        self._check_question_index(quiz, question_index)
        target = question_index + direction
        if not 0 <= target < len(quiz.questions):
            return quiz
        questions = list(quiz.questions)
        questions[question_index], questions[target] = questions[target], questions[question_index]
        return self._store(index, replace(quiz, questions=tuple(questions)))

    def replace_questions(self, quiz_id: str, questions: Iterable[Question]) -> Quiz:
        index = self._index_of(quiz_id)
        prepared = tuple(self._prepare_question(q) for q in questions)
        return self._store(index, replace(self._quizzes[index], questions=prepared))

    def reset_questions(self, quiz_id: str) -> Quiz:
        """Replace a quiz's questions with those of the bundled default quiz."""
        quiz = self.replace_questions(quiz_id, self._default_quiz.questions)
        logger.info("Restored %d default questions in quiz %s", len(quiz.questions), quiz_id)
        return quiz

    # --- Helpers ---

    def _store(self, index: int, quiz: Quiz) -> Quiz:
        self._quizzes[index] = quiz
        return quiz

    def _index_of(self, quiz_id: str) -> int:
        for index, quiz in enumerate(self._quizzes):
            if quiz.id == quiz_id:
                return index
        raise KeyError(f"Quiz '{quiz_id}' not found")

    @staticmethod
    def _check_question_index(quiz: Quiz, question_index: int) -> None:
        if not 0 <= question_index < len(quiz.questions):
            raise IndexError(f"Question index {question_index} out of range")

    def _next_quiz_id(self) -> str:
        self._quiz_counter += 1
        return f"quiz-{self._quiz_counter}"

    def _next_question_id(self) -> int:
        self._question_counter += 1
        return self._question_counter

    def _prepare_question(self, question: Question) -> Question:
        """Validate and normalize a question before storage."""
        cleaned_text = question.text.strip()
        if not cleaned_text:
            raise ValueError("Question text must not be empty.")

        options = self._validate_options(question.options)
        correct = question.correct_option.strip().upper()
        if correct not in OPTION_KEYS:
            raise ValueError("Correct option must be one of A, B, C, or D.")

        return Question(
            id=self._next_question_id(),
            text=cleaned_text,
            options=options,
            correct_option=correct,
            time_limit_seconds=self._normalize_time_limit(question.time_limit_seconds),
            points=self._normalize_points(question.points),
            speed_bonus=self._normalize_speed_bonus(question.speed_bonus),
        )

    @staticmethod
    def _validate_name(name: str) -> str:
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("Quiz name must not be empty.")
        return cleaned

    @staticmethod
    def _validate_options(options: Iterable[QuestionOption]) -> tuple[QuestionOption, ...]:
        by_key = {option.key.strip().upper(): option.text.strip() for option in options}
        if sorted(by_key) != list(OPTION_KEYS):
            raise ValueError("Each question must have exactly four options (A-D).")
        if any(not text for text in by_key.values()):
            raise ValueError("Option text cannot be empty.")
        return tuple(QuestionOption(key=key, text=by_key[key]) for key in OPTION_KEYS)

    @staticmethod
    def _normalize_time_limit(time_limit_seconds: int | None) -> int:
        if time_limit_seconds is None:
            return DEFAULT_TIME_LIMIT_SECONDS
        if not isinstance(time_limit_seconds, int):
            raise ValueError("Time limit must be provided as an integer number of seconds.")
        if not MIN_TIME_LIMIT_SECONDS <= time_limit_seconds <= MAX_TIME_LIMIT_SECONDS:
            raise ValueError(
                f"Time limit must be between {MIN_TIME_LIMIT_SECONDS} and {MAX_TIME_LIMIT_SECONDS} seconds."
            )
        return time_limit_seconds

    @staticmethod
    def _normalize_points(points: int | None) -> int:
        points = points or DEFAULT_POINTS
        if not MIN_POINTS <= points <= MAX_POINTS:
            raise ValueError(f"Points must be between {MIN_POINTS} and {MAX_POINTS}.")
        return points

    @staticmethod
    def _normalize_speed_bonus(speed_bonus: int | None) -> int | None:
        if speed_bonus is None:
            return None
        if not MIN_SPEED_BONUS_PCT <= speed_bonus <= MAX_SPEED_BONUS_PCT:
            raise ValueError(
                f"Speed bonus must be between {MIN_SPEED_BONUS_PCT} and {MAX_SPEED_BONUS_PCT} percent."
            )
        return speed_bonus

    @classmethod
    def _validate_quiz_speed_bonus(cls, speed_bonus: int | None) -> int:
        if speed_bonus is None:
            return DEFAULT_SPEED_BONUS_PCT
        return cls._normalize_speed_bonus(speed_bonus)


def load_default_quiz(path: Path = DEFAULT_QUIZ_PATH) -> Quiz:
    """Build the bundled default quiz, or an empty placeholder if the file is unusable."""
    try:
        imported = load_quiz_from_file(path)
    except (OSError, QuizImportError):
        logger.exception("Could not load the default quiz from %s", path)
        return Quiz(id=DEFAULT_QUIZ_ID, name="Trivia", is_active=True)
    return Quiz(
        id=DEFAULT_QUIZ_ID,
        name=imported.name,
        description=imported.description,
        speed_bonus=imported.speed_bonus,
        show_correct_answer=imported.show_correct_answer,
        questions=tuple(imported.questions),
        is_active=True,
    )

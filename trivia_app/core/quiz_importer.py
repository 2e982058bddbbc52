"""Utilities for importing quizzes from a human-friendly text file.

File format (blocks separated by blank lines or '---'):

    QUIZ: Quiz name                (optional header block)
    DESCRIPTION: Short blurb       (optional)
    SPEEDBONUS: 0-100              (optional quiz default, 50 when omitted)
    SHOWCORRECT: yes|no            (optional, reveal answers after each question)

    Q: Question text. Additional lines until the next marker are treated as
       part of the question.
    A: First option text
    B: Second option text
    C: Third option text
    D: Fourth option text
    CORRECT: A|B|C|D
    TIMELIMIT: seconds             (optional, 30 when omitted)
    POINTS: base points            (optional, 100 when omitted)
    SPEEDBONUS: 0-100              (optional, falls back to the quiz default)

Example:

    QUIZ: Space trivia
    SPEEDBONUS: 50

    Q: Which planet is known as the red planet?
    A: Venus
    B: Mars
    C: Jupiter
    D: Mercury
    CORRECT: B
    TIMELIMIT: 20
    POINTS: 200
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from trivia_app.constants.quiz_constants import (
    DEFAULT_POINTS,
    DEFAULT_SPEED_BONUS_PCT,
    DEFAULT_TIME_LIMIT_SECONDS,
    OPTION_KEYS,
)
from trivia_app.core.models import Question, QuestionOption


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for imported quiz metadata and questions."""

    name: str
    questions: list[Question]
    description: str = ""
    speed_bonus: int = DEFAULT_SPEED_BONUS_PCT
    show_correct_answer: bool = True
    source_path: Path | None = None


_HEADER_KEYS = ("QUIZ", "DESCRIPTION", "SPEEDBONUS", "SHOWCORRECT")
_TRUE_WORDS = {"yes", "true", "1", "on"}
_FALSE_WORDS = {"no", "false", "0", "off"}


def load_quiz_from_file(file_path: Path) -> ImportedQuiz:
    text = file_path.read_text(encoding="utf-8")
    imported = parse_quiz_text(text, default_name=file_path.stem)
    imported.source_path = file_path
    return imported


def parse_quiz_text(text: str, default_name: str = "Imported quiz") -> ImportedQuiz:
    blocks = _split_blocks(text)
    if not blocks:
        raise QuizImportError("Quiz file did not contain any questions.")

    imported = ImportedQuiz(name=default_name, questions=[])
    if _is_header_block(blocks[0]):
        _apply_header(imported, blocks.pop(0))

    imported.questions = [_parse_block(block) for block in blocks]
    if not imported.questions:
        raise QuizImportError("Quiz file did not contain any questions.")
    return imported


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return [block for block in blocks if block]


def _is_header_block(block: str) -> bool:
    first_line = block.splitlines()[0].strip().upper()
    return first_line.startswith("QUIZ:")


def _apply_header(imported: ImportedQuiz, block: str) -> None:
    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        marker, _, value = line.partition(":")
        marker = marker.strip().upper()
        value = value.strip()
        if marker not in _HEADER_KEYS:
            raise QuizImportError(f"Unknown quiz header line: '{line}'.")
        if marker == "QUIZ":
            if not value:
                raise QuizImportError("QUIZ must include a name.")
            imported.name = value
        elif marker == "DESCRIPTION":
            imported.description = value
        elif marker == "SPEEDBONUS":
            imported.speed_bonus = _parse_int(value, "SPEEDBONUS", minimum=0, maximum=100)
        elif marker == "SHOWCORRECT":
            imported.show_correct_answer = _parse_flag(value, "SHOWCORRECT")


def _parse_block(block: str) -> Question:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    time_limit_seconds = DEFAULT_TIME_LIMIT_SECONDS
    points = DEFAULT_POINTS
    speed_bonus: int | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("TIMELIMIT:"):
            time_limit_seconds = _parse_int(line.split(":", 1)[1], "TIMELIMIT", minimum=1)
            current_section = None
            continue

        if upper.startswith("POINTS:"):
            points = _parse_int(line.split(":", 1)[1], "POINTS", minimum=1)
            current_section = None
            continue

        if upper.startswith("SPEEDBONUS:"):
            raw_value = line.split(":", 1)[1].strip()
            if raw_value.lower() in ("", "default"):
                speed_bonus = None
            else:
                speed_bonus = _parse_int(raw_value, "SPEEDBONUS", minimum=0, maximum=100)
            current_section = None
            continue

        if len(line) > 2 and line[0].upper() in OPTION_KEYS and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in OPTION_KEYS:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    if not question_lines:
        raise QuizImportError("Question text missing (Q: ...)")
    if len(options) != len(OPTION_KEYS):
        raise QuizImportError("Each question must define exactly four options (A-D).")

    option_list = tuple(QuestionOption(key=letter, text=options[letter].strip()) for letter in OPTION_KEYS)
    if any(not option.text for option in option_list):
        raise QuizImportError("Option text cannot be empty.")

    if correct_letter is None:
        raise QuizImportError("Each question must name its CORRECT option.")
    if correct_letter not in OPTION_KEYS:
        raise QuizImportError("CORRECT must be one of A, B, C, or D.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError("Question text cannot be empty.")

    return Question(
        id=0,  # assigned by QuizRepository when the quiz is stored
        text=question_text,
        options=option_list,
        correct_option=correct_letter,
        time_limit_seconds=time_limit_seconds,
        points=points,
        speed_bonus=speed_bonus,
    )


def _parse_int(raw_value: str, marker: str, minimum: int | None = None, maximum: int | None = None) -> int:
    raw_value = raw_value.strip()
    if not raw_value:
        raise QuizImportError(f"{marker} must include an integer value.")
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise QuizImportError(f"{marker} must be an integer.") from exc
    if minimum is not None and value < minimum:
        raise QuizImportError(f"{marker} must be at least {minimum}.")
    if maximum is not None and value > maximum:
        raise QuizImportError(f"{marker} must be at most {maximum}.")
    return value


def _parse_flag(raw_value: str, marker: str) -> bool:
    lowered = raw_value.strip().lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    raise QuizImportError(f"{marker} must be yes or no.")

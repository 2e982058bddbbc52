"""Utilities for exporting quizzes to the plain-text format used for imports."""

from __future__ import annotations

from pathlib import Path

from trivia_app.core.models import Question, Quiz


def save_quiz_to_file(file_path: Path, quiz: Quiz) -> None:
    """Persist the provided quiz to disk in the text import format."""

    if not quiz.questions:
        raise ValueError("Cannot export an empty quiz.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize_quiz(quiz), encoding="utf-8")


def serialize_quiz(quiz: Quiz) -> str:
    blocks = [_serialize_header(quiz)]
    blocks.extend(_serialize_question(question) for question in quiz.questions)
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_header(quiz: Quiz) -> str:
    lines = [f"QUIZ: {quiz.name}"]
    if quiz.description:
        lines.append(f"DESCRIPTION: {' '.join(quiz.description.splitlines())}")
    if quiz.speed_bonus is not None:
        lines.append(f"SPEEDBONUS: {quiz.speed_bonus}")
    lines.append(f"SHOWCORRECT: {'yes' if quiz.show_correct_answer else 'no'}")
    return "\n".join(lines)


def _serialize_question(question: Question) -> str:
    lines: list[str] = []

    question_lines = question.text.splitlines() or [question.text]
    lines.append(f"Q: {question_lines[0]}")
    lines.extend(question_lines[1:])

    for option in question.options:
        option_lines = option.text.splitlines() or [option.text]
        lines.append(f"{option.key}: {option_lines[0]}")
        lines.extend(option_lines[1:])

    lines.append(f"CORRECT: {question.correct_option}")
    if question.time_limit_seconds is not None:
        lines.append(f"TIMELIMIT: {question.time_limit_seconds}")
    if question.points:
        lines.append(f"POINTS: {question.points}")
    if question.speed_bonus is not None:
        lines.append(f"SPEEDBONUS: {question.speed_bonus}")

    return "\n".join(lines)

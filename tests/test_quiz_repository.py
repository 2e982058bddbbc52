from pathlib import Path

import pytest

from trivia_app.core.models import Quiz
from trivia_app.core.services.quiz_repository import (
    DEFAULT_QUIZ_ID,
    QuizRepository,
    load_default_quiz,
)

from conftest import make_question


@pytest.fixture
def repository():
    return QuizRepository()


@pytest.fixture
def empty_repository():
    return QuizRepository(default_quiz=Quiz(id=DEFAULT_QUIZ_ID, name="Fallback"), seed_default=False)


def _active_ids(repo):
    return [quiz.id for quiz in repo.list_quizzes() if quiz.is_active]


def test_default_quiz_is_seeded_and_active(repository):
    quizzes = repository.list_quizzes()

    assert [quiz.id for quiz in quizzes] == [DEFAULT_QUIZ_ID]
    active = repository.get_active_quiz()
    assert active.is_active
    assert len(active.questions) == 5
    assert [q.id for q in active.questions] == [1, 2, 3, 4, 5]


def test_first_quiz_in_empty_store_becomes_active(empty_repository):
    first = empty_repository.create_quiz("First", questions=[make_question()])
    second = empty_repository.create_quiz("Second")

    assert first.is_active
    assert not second.is_active
    assert empty_repository.get_active_quiz().id == first.id


def test_new_quiz_does_not_steal_active_flag(repository):
    created = repository.create_quiz("  Office trivia  ", description=" Fun ", speed_bonus=None)

    assert created.id == "quiz-1"
    assert created.name == "Office trivia"
    assert created.description == "Fun"
    assert created.speed_bonus == 50
    assert _active_ids(repository) == [DEFAULT_QUIZ_ID]


def test_set_active_quiz_keeps_exactly_one_active(repository):
    created = repository.create_quiz("Other")
    repository.set_active_quiz(created.id)

    assert _active_ids(repository) == [created.id]
    assert repository.get_active_quiz().id == created.id

    repository.set_active_quiz(DEFAULT_QUIZ_ID)
    assert _active_ids(repository) == [DEFAULT_QUIZ_ID]


def test_deleting_active_quiz_promotes_first_remaining(repository):
    other = repository.create_quiz("Other")

    remaining = repository.delete_quiz(DEFAULT_QUIZ_ID)

    assert [quiz.id for quiz in remaining] == [other.id]
    assert remaining[0].is_active
    assert repository.get_active_quiz().id == other.id


def test_deleting_every_quiz_falls_back_to_default(repository):
    repository.delete_quiz(DEFAULT_QUIZ_ID)

    assert repository.list_quizzes() == []
    assert repository.get_active_quiz().id == DEFAULT_QUIZ_ID


def test_unknown_quiz_raises_key_error(repository):
    with pytest.raises(KeyError):
        repository.get_quiz("missing")
    with pytest.raises(KeyError):
        repository.set_active_quiz("missing")


def test_duplicate_copies_questions_with_new_ids(repository):
    copy = repository.duplicate_quiz(DEFAULT_QUIZ_ID)
    source = repository.get_quiz(DEFAULT_QUIZ_ID)

    assert copy.name == f"{source.name} (Copy)"
    assert not copy.is_active
    assert [q.text for q in copy.questions] == [q.text for q in source.questions]
    assert not {q.id for q in copy.questions} & {q.id for q in source.questions}


def test_question_edits_preserve_identity(repository):
    quiz = repository.create_quiz("Edits", questions=[make_question(text="Original?")])
    original_id = quiz.questions[0].id

    updated = repository.update_question(quiz.id, 0, make_question(text="Changed?", correct="d"))

    assert updated.questions[0].id == original_id
    assert updated.questions[0].text == "Changed?"
    assert updated.questions[0].correct_option == "D"

    added = repository.add_question(quiz.id, make_question(text="Second?"))
    assert len(added.questions) == 2

    trimmed = repository.delete_question(quiz.id, 0)
    assert [q.text for q in trimmed.questions] == ["Second?"]

    with pytest.raises(IndexError):
        repository.delete_question(quiz.id, 5)


def test_sessions_keep_their_quiz_snapshot(repository):
    before = repository.get_active_quiz()
    repository.add_question(before.id, make_question(text="Late addition?"))

    assert len(before.questions) == 5
    assert len(repository.get_active_quiz().questions) == 6


def test_question_defaults_are_filled_in(repository):
    quiz = repository.create_quiz(
        "Defaults",
        questions=[make_question(time_limit_seconds=None, points=None, speed_bonus=None)],
    )
    question = quiz.questions[0]

    assert question.time_limit_seconds == 30
    assert question.points == 100
    assert question.speed_bonus is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"time_limit_seconds": 4},
        {"time_limit_seconds": 121},
        {"points": 5},
        {"points": 1001},
        {"speed_bonus": 101},
        {"speed_bonus": -1},
        {"text": "   "},
        {"correct": "E"},
    ],
)
def test_invalid_questions_are_rejected(repository, kwargs):
    with pytest.raises(ValueError):
        repository.add_question(DEFAULT_QUIZ_ID, make_question(**kwargs))


def test_blank_quiz_name_is_rejected(repository):
    with pytest.raises(ValueError):
        repository.create_quiz("   ")
    with pytest.raises(ValueError):
        repository.update_quiz(DEFAULT_QUIZ_ID, name="")


def test_update_quiz_changes_only_given_fields(repository):
    updated = repository.update_quiz(DEFAULT_QUIZ_ID, speed_bonus=0, show_correct_answer=False)

    assert updated.speed_bonus == 0
    assert updated.show_correct_answer is False
    assert updated.name == "General Knowledge Rush"
    assert updated.is_active


def test_missing_default_file_gives_empty_quiz(tmp_path: Path):
    quiz = load_default_quiz(tmp_path / "missing.txt")

    assert quiz.id == DEFAULT_QUIZ_ID
    assert quiz.questions == ()
    assert quiz.is_active


def test_move_question_swaps_with_neighbour(repository):
    texts = [q.text for q in repository.get_quiz(DEFAULT_QUIZ_ID).questions]

    down = repository.move_question(DEFAULT_QUIZ_ID, 1, 1)
    assert [q.text for q in down.questions] == [texts[0], texts[2], texts[1], texts[3], texts[4]]

    up = repository.move_question(DEFAULT_QUIZ_ID, 2, -1)
    assert [q.text for q in up.questions] == texts


@pytest.mark.parametrize("index, direction", [(0, -1), (4, 1)])
def test_move_past_either_end_is_a_no_op(repository, index, direction):
    before = repository.get_quiz(DEFAULT_QUIZ_ID)

    after = repository.move_question(DEFAULT_QUIZ_ID, index, direction)

    assert after is before


def test_move_question_rejects_bad_arguments(repository):
    with pytest.raises(ValueError):
        repository.move_question(DEFAULT_QUIZ_ID, 0, 2)
    with pytest.raises(IndexError):
        repository.move_question(DEFAULT_QUIZ_ID, 5, -1)
    with pytest.raises(KeyError):
        repository.move_question("missing", 0, 1)


def test_reset_questions_restores_default_set(repository):
    default_texts = [q.text for q in repository.get_quiz(DEFAULT_QUIZ_ID).questions]
    quiz = repository.create_quiz("Custom", questions=[make_question(text="Only one?")])

    reset = repository.reset_questions(quiz.id)

    assert [q.text for q in reset.questions] == default_texts
    assert reset.name == "Custom"
    used_ids = {q.id for q in repository.get_quiz(DEFAULT_QUIZ_ID).questions}
    assert not {q.id for q in reset.questions} & used_ids

import pytest

from trivia_app.core.models import Quiz
from trivia_app.core.services.quiz_repository import QuizRepository
from trivia_app.core.services.quiz_session import QuizConfigurationError, SessionStatus
from trivia_app.core.trivia_manager import TriviaManager

from conftest import make_question


@pytest.fixture
def manager(scheduler):
    repository = QuizRepository(default_quiz=Quiz(id="default", name="Empty"), seed_default=False)
    repository.create_quiz("Two questions", questions=[make_question(1, correct="A"), make_question(2, correct="B")])
    return TriviaManager(repository=repository, scheduler_factory=lambda: scheduler)


def _play(manager, scheduler, participant_id, answers, delay=0):
    manager.start_session(participant_id)
    for key in answers:
        scheduler.advance(delay)
        manager.submit_answer(participant_id, key)
        scheduler.advance(2.5)


def test_full_run_updates_participant_and_leaderboard(manager, scheduler):
    ada = manager.register_participant("Ada", "E-1", "R&D")

    _play(manager, scheduler, ada.id, ["A", "B"], delay=3)

    result = manager.get_result(ada.id)
    # 100 + floor(50 * 0.9) per question
    assert result.summary.total_score == 290
    assert result.summary.correct_count == 2
    assert result.position == 1
    assert result.participant.completed
    assert result.participant.total_score == 290
    assert len(manager.registry.answers_for(ada.id)) == 2

    rows = manager.get_leaderboard()
    assert [(row.position, row.full_name) for row in rows] == [(1, "Ada")]
    assert manager.get_leaderboard_size() == 1


def test_positions_reflect_other_participants(manager, scheduler):
    fast = manager.register_participant("Fast", "E-1", "R&D")
    slow = manager.register_participant("Slow", "E-2", "Sales")

    _play(manager, scheduler, slow.id, ["A", "C"], delay=10)
    _play(manager, scheduler, fast.id, ["A", "B"], delay=0)

    assert manager.get_result(fast.id).position == 1
    assert manager.get_result(slow.id).position == 2
    assert [row.full_name for row in manager.get_leaderboard(department="Sales")] == ["Slow"]


def test_result_before_completion_is_an_error(manager, scheduler):
    ada = manager.register_participant("Ada", "E-1", "R&D")
    manager.start_session(ada.id)

    with pytest.raises(RuntimeError):
        manager.get_result(ada.id)


def test_unknown_participant_cannot_start(manager):
    with pytest.raises(KeyError):
        manager.start_session("ghost")


def test_empty_quiz_does_not_store_a_session(manager, scheduler):
    empty = manager.create_quiz("Nothing yet")
    manager.set_active_quiz(empty.id)
    ada = manager.register_participant("Ada", "E-1", "R&D")

    with pytest.raises(QuizConfigurationError):
        manager.start_session(ada.id)
    with pytest.raises(KeyError):
        manager.get_session(ada.id)
    assert scheduler.pending_count() == 0


def test_restart_abandons_previous_session(manager, scheduler):
    ada = manager.register_participant("Ada", "E-1", "R&D")
    manager.start_session(ada.id)
    first = manager.get_session(ada.id)

    view = manager.start_session(ada.id)

    assert first.status is SessionStatus.ABANDONED
    assert view.status is SessionStatus.ACTIVE
    assert manager.get_session(ada.id) is not first


def test_submit_answer_returns_record_and_view(manager, scheduler):
    ada = manager.register_participant("Ada", "E-1", "R&D")
    manager.start_session(ada.id)

    record, view = manager.submit_answer(ada.id, "B")
    ignored, _ = manager.submit_answer(ada.id, "A")

    assert record.is_correct is False
    assert ignored is None
    assert view.last_answer == record


def test_reset_participants_stops_sessions(manager, scheduler):
    ada = manager.register_participant("Ada", "E-1", "R&D")
    manager.start_session(ada.id)
    session = manager.get_session(ada.id)

    manager.reset_participants()
    scheduler.advance(60)

    assert session.status is SessionStatus.ABANDONED
    assert manager.get_stats().total == 0
    assert manager.registry.answers_for(ada.id) == []


def test_export_participants_csv(manager, scheduler):
    ada = manager.register_participant("Ada", "E-1", "R&D")
    manager.register_participant("Bob", "E-2", "Sales")
    _play(manager, scheduler, ada.id, ["A", "B"])

    filename, text = manager.export_participants_csv()

    assert filename.startswith("quiz-participants-")
    lines = text.lstrip("\ufeff").splitlines()
    assert lines[1].startswith("1,Ada,E-1,R&D,300,2/2,Completed")
    assert lines[2].startswith("2,Bob,E-2,Sales,0,0/2,In progress")

    _, completed_only = manager.export_participants_csv(status="completed")
    assert len(completed_only.splitlines()) == 2


def test_import_and_export_quiz_text(manager):
    quiz = manager.import_quiz_text(
        "QUIZ: Imported\n\nQ: Two plus two?\nA: 3\nB: 4\nC: 5\nD: 22\nCORRECT: B\n"
    )

    assert quiz.name == "Imported"
    assert not quiz.is_active
    assert "CORRECT: B" in manager.export_quiz_text(quiz.id)


def test_completed_participant_cannot_replay(manager, scheduler):
    ada = manager.register_participant("Ada", "E-1", "R&D")
    _play(manager, scheduler, ada.id, ["A", "B"])

    with pytest.raises(RuntimeError):
        manager.start_session(ada.id)
    scheduler.advance(60)

    assert [a.question_index for a in manager.registry.answers_for(ada.id)] == [0, 1]
    assert manager.get_participant(ada.id).total_score == 300
    assert manager.get_result(ada.id).summary.total_score == 300


def test_restart_discards_answers_of_unfinished_run(manager, scheduler):
    ada = manager.register_participant("Ada", "E-1", "R&D")
    manager.start_session(ada.id)
    manager.submit_answer(ada.id, "C")
    scheduler.advance(2.5)
    assert len(manager.registry.answers_for(ada.id)) == 1

    _play(manager, scheduler, ada.id, ["A", "B"])

    answers = manager.registry.answers_for(ada.id)
    assert [a.question_index for a in answers] == [0, 1]
    assert [a.selected_option for a in answers] == ["A", "B"]
    assert {a.quiz_id for a in answers} == {manager.get_active_quiz().id}
    assert manager.get_participant(ada.id).total_score == 300


def test_answer_of_abandoned_run_is_not_stored_late(manager, scheduler):
    ada = manager.register_participant("Ada", "E-1", "R&D")
    manager.start_session(ada.id)
    manager.submit_answer(ada.id, "C")
    # Restart before the first answer was written.
    manager.start_session(ada.id)
    scheduler.advance(1)

    assert manager.registry.answers_for(ada.id) == []


def test_stored_answers_keep_the_quiz_they_came_from(manager, scheduler):
    first_quiz = manager.get_active_quiz().id
    ada = manager.register_participant("Ada", "E-1", "R&D")
    _play(manager, scheduler, ada.id, ["A", "B"])

    other = manager.create_quiz("Other", questions=[make_question(7, correct="D")])
    manager.set_active_quiz(other.id)
    bob = manager.register_participant("Bob", "E-2", "Sales")
    _play(manager, scheduler, bob.id, ["D"])

    assert {a.quiz_id for a in manager.registry.answers_for(ada.id)} == {first_quiz}
    assert [a.quiz_id for a in manager.registry.answers_for(bob.id)] == [other.id]
    assert manager.get_participant(bob.id).quiz_id == other.id


def test_move_and_reset_questions(manager):
    quiz = manager.get_active_quiz()
    first, second = (q.id for q in quiz.questions)

    moved = manager.move_question(quiz.id, 0, 1)
    assert [q.id for q in moved.questions] == [second, first]

    reset = manager.reset_questions(quiz.id)
    assert reset.questions == ()  # fixture's default quiz has no questions

from datetime import datetime, timedelta

import pytest

from trivia_app.core.services.leaderboard import Leaderboard
from trivia_app.core.services.participant_registry import ParticipantRegistry


@pytest.fixture
def registry():
    registry = ParticipantRegistry()
    base = datetime(2024, 5, 1, 9, 0, 0)
    rows = [
        ("Ada", "R&D", 300),
        ("Bob", "Sales", 450),
        ("Cleo", "R&D", 300),
        ("Dan", "Sales", None),
        ("Eve", "R&D", 120),
    ]
    for offset, (name, department, score) in enumerate(rows):
        participant = registry.register(name, f"E-{offset}", department)
        participant.created_at = base + timedelta(minutes=offset)
        if score is not None:
            registry.record_final_result(participant.id, score, score // 150, 3)
    return registry


@pytest.fixture
def leaderboard(registry):
    return Leaderboard(registry)


def _by_name(registry, name):
    return next(p for p in registry.all_participants() if p.full_name == name)


def test_ranks_completed_participants_by_score(leaderboard):
    rows = leaderboard.get_rows()

    assert [(row.position, row.full_name, row.total_score) for row in rows] == [
        (1, "Bob", 450),
        (2, "Ada", 300),
        (3, "Cleo", 300),
        (4, "Eve", 120),
    ]


def test_equal_scores_keep_registration_order(registry, leaderboard):
    cleo = _by_name(registry, "Cleo")
    cleo.created_at = datetime(2024, 4, 30)

    names = [row.full_name for row in leaderboard.get_rows()]

    assert names[1:3] == ["Cleo", "Ada"]


def test_limit_and_department_filter(leaderboard):
    assert [row.full_name for row in leaderboard.get_rows(limit=2)] == ["Bob", "Ada"]

    rows = leaderboard.get_rows(department="R&D")
    assert [(row.position, row.full_name) for row in rows] == [(1, "Ada"), (2, "Cleo"), (3, "Eve")]


def test_search_keeps_positions(leaderboard):
    rows = leaderboard.get_rows(search="eve")

    assert [(row.position, row.full_name) for row in rows] == [(4, "Eve")]


def test_position_of(registry, leaderboard):
    assert leaderboard.position_of(_by_name(registry, "Bob").id) == 1
    assert leaderboard.position_of(_by_name(registry, "Eve").id) == 4
    assert leaderboard.position_of(_by_name(registry, "Dan").id) is None
    assert leaderboard.position_of("unknown") is None

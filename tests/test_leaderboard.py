from __future__ import annotations

import pytest

from backend.cache_backend import MemoryCacheBackend
from backend.domain.errors import InvalidLeaderboardEntryError
from backend.game.leaderboard import LeaderboardStore


@pytest.fixture
def board():
    cache = MemoryCacheBackend()
    return LeaderboardStore(cache_factory=lambda: cache, key="leaderboard:test", size=10)


def test_keeps_only_top_ten_in_descending_order(board):
    for i in range(11):
        board.submit(f"Player {i}", (i + 1) * 100)

    top = board.top()
    assert [e.score for e in top] == [1100, 1000, 900, 800, 700, 600, 500, 400, 300, 200]
    assert "Player 0" not in {e.name for e in top}


@pytest.mark.parametrize("name", ["", "   ", "<>!", None, 42])
def test_blank_or_non_string_names_rejected(board, name):
    with pytest.raises(InvalidLeaderboardEntryError):
        board.submit(name, 100)
    assert board.top() == []


def test_name_is_sanitized_before_storage(board):
    entry = board.submit("Ann<>!", 1200)
    assert entry.name == "Ann"
    assert [e.name for e in board.top()] == ["Ann"]


@pytest.mark.parametrize("score", [-1, "100", None, True, float("nan"), float("inf")])
def test_invalid_scores_rejected(board, score):
    with pytest.raises(InvalidLeaderboardEntryError):
        board.submit("Ann", score)


def test_zero_and_fractional_scores_accepted(board):
    board.submit("Zero", 0)
    board.submit("Half", 10.5)
    assert [(e.name, e.score) for e in board.top()] == [("Half", 10.5), ("Zero", 0.0)]


def test_resubmission_keeps_best_score(board):
    board.submit("Ann", 500)
    board.submit("Ann", 300)
    assert [(e.name, e.score) for e in board.top()] == [("Ann", 500.0)]
    board.submit("Ann", 900)
    assert [(e.name, e.score) for e in board.top()] == [("Ann", 900.0)]


def test_ties_ordered_by_name_descending(board):
    board.submit("Alice", 100)
    board.submit("Bob", 100)
    assert [e.name for e in board.top()] == ["Bob", "Alice"]


def test_top_limit_is_capped_by_size(board):
    for i in range(5):
        board.submit(f"P{i}", i)
    assert len(board.top(3)) == 3
    assert len(board.top(50)) == 5
    assert board.top(0) == []
    assert board.size == 10

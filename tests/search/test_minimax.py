from __future__ import annotations

import pytest

from src.engine.state import GameState
from src.search.service import SCORE_MAX, minimax


def moves_of(state: GameState, successors) -> set[str]:
    return {state.move_to(s).to_uci() for s in successors}


def test_depth_zero_is_the_heuristic() -> None:
    res = minimax(GameState.from_fen("4k3/8/8/8/8/8/8/3QK3 w - - 0 1"), 0)
    assert res.value == 90
    assert res.successors == ()
    assert res.nodes == 1


def test_initial_position_all_moves_tie() -> None:
    state = GameState.initial()
    one = minimax(state, 1)
    assert one.value == 0
    assert len(one.successors) == 20
    assert one.nodes == 21
    two = minimax(state, 2)
    assert two.value == 0
    assert len(two.successors) == 20
    assert two.nodes == 421


def test_ties_keep_generation_order() -> None:
    state = GameState.initial()
    assert minimax(state, 1).successors == tuple(state.legal_moves())


def test_white_takes_the_hanging_queen() -> None:
    state = GameState.from_fen("4k3/8/8/3q4/8/8/8/3RK3 w - - 0 1")
    res = minimax(state, 1)
    assert res.value == 50
    assert moves_of(state, res.successors) == {"d1d5"}


def test_black_minimizes() -> None:
    state = GameState.from_fen("4k3/8/8/3r4/8/8/8/3QK3 b - - 0 1")
    res = minimax(state, 1)
    assert res.value == -50
    assert moves_of(state, res.successors) == {"d5d1"}


def test_mate_in_one_is_found_with_two_plies() -> None:
    state = GameState.from_fen("7k/8/6K1/8/8/8/8/1Q6 w - - 0 1")
    res = minimax(state, 2)
    assert res.value == SCORE_MAX
    assert moves_of(state, res.successors) == {"b1b8"}


def test_negative_depth_rejected() -> None:
    with pytest.raises(ValueError):
        minimax(GameState.initial(), -1)

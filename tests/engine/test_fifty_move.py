from __future__ import annotations

from src.engine.board import BoardState
from src.engine.move import parse_uci
from src.engine.state import FIFTY_MOVE_PLIES, GameState


SHUFFLE = ("g1f3", "g8f6", "f3g1", "f6g8")


def test_threshold_is_150_plies() -> None:
    assert FIFTY_MOVE_PLIES == 150
    board = BoardState.initial()
    assert not GameState(board=board, ply=149, last_event_ply=0).fifty_move_rule_draw()
    assert GameState(board=board, ply=150, last_event_ply=0).fifty_move_rule_draw()
    assert not GameState(board=board, ply=170, last_event_ply=21).fifty_move_rule_draw()


def test_draw_exactly_after_150_quiet_plies() -> None:
    state = GameState.from_fen("4k1n1/8/8/8/8/8/8/4K1N1 w - - 0 1")
    for i in range(150):
        assert state.ply - state.last_event_ply == i
        assert not state.fifty_move_rule_draw()
        state = state.apply(parse_uci(SHUFFLE[i % 4]))
    assert state.ply - state.last_event_ply == 150
    assert state.fifty_move_rule_draw()


def test_pawn_move_resets_the_count() -> None:
    state = GameState.from_fen("4k3/p7/8/8/8/8/P7/4K3 w - - 120 70")
    assert state.ply == 138
    assert state.last_event_ply == 18
    after = state.apply(parse_uci("a2a3"))
    assert after.last_event_ply == after.ply == 139
    assert not after.fifty_move_rule_draw()

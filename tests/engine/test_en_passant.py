from __future__ import annotations

import pytest

from src.engine.board import EnPassantRecord, PieceType, Player
from src.engine.move import parse_uci, str_to_square as sq
from src.engine.state import GameState


def play(state: GameState, *moves: str) -> GameState:
    for uci in moves:
        state = state.apply(parse_uci(uci))
    return state


def uci_set(state: GameState) -> set[str]:
    return {state.move_to(s).to_uci() for s in state.legal_moves()}


def _after_white_double_step() -> GameState:
    # Black pawn reaches d4, then White's e-pawn double-steps next to it
    return play(GameState.initial(), "h2h3", "d7d5", "h3h4", "d5d4", "e2e4")


def test_double_step_records_en_passant_opportunity() -> None:
    state = _after_white_double_step()
    assert state.board.en_passant == EnPassantRecord(ply=4, skipped=sq("e3"), target=sq("e4"))
    assert state.board.en_passant.is_open(state.ply)


def test_black_captures_en_passant_immediately() -> None:
    state = _after_white_double_step()
    assert "d4e3" in uci_set(state)
    after = play(state, "d4e3")
    assert after.board.piece_at(sq("e3")) == (PieceType.PAWN, Player.BLACK)
    assert after.board.piece_at(sq("e4")) is None
    assert after.board.piece_at(sq("d4")) is None
    assert after.last_event_ply == after.ply


def test_en_passant_expires_after_one_ply() -> None:
    state = play(_after_white_double_step(), "h7h6", "a2a3")
    assert "d4e3" not in uci_set(state)
    with pytest.raises(ValueError):
        play(state, "d4e3")
    for successor in state.legal_moves():
        assert successor.board.piece_at(sq("e4")) == (PieceType.PAWN, Player.WHITE)


def test_white_en_passant_from_fen() -> None:
    state = GameState.from_fen("4k3/8/8/3Pp3/8/8/8/4K3 w - e6 0 1")
    assert "d5e6" in uci_set(state)
    after = play(state, "d5e6")
    assert after.board.piece_at(sq("e6")) == (PieceType.PAWN, Player.WHITE)
    assert after.board.piece_at(sq("e5")) is None


def test_en_passant_exposing_own_king_is_illegal() -> None:
    # Capturing d5 clears both pawns off the fifth rank and exposes a5 to h5
    state = GameState.from_fen("8/8/8/K2pP2r/8/8/8/4k3 w - d6 0 1")
    ms = uci_set(state)
    assert "e5d6" not in ms
    assert "e5e6" in ms


def test_single_step_sets_no_record() -> None:
    state = play(GameState.initial(), "e2e3", "d7d6")
    assert not state.board.en_passant.is_open(state.ply)

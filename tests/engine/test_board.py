from __future__ import annotations

import pytest

from src.engine.board import (
    BoardState,
    PieceType,
    Player,
    pos_from_rowcol,
    steps,
)
from src.engine.move import str_to_square as sq


def test_pos_from_rowcol_rejects_off_board() -> None:
    assert pos_from_rowcol(0, 0) == 0
    assert pos_from_rowcol(2, 3) == 19
    assert pos_from_rowcol(7, 7) == 63
    for row, col in ((-1, 0), (8, 0), (0, 8), (0, -1), (3, 9)):
        assert pos_from_rowcol(row, col) is None


def test_steps_walk_ray_and_stop_at_edge() -> None:
    assert steps(sq("a1"), (1, 1), 7) == [(9 * d, d) for d in range(1, 8)]
    assert steps(sq("h1"), (0, 1), 7) == []
    assert steps(sq("d4"), (1, 0), 2) == [(sq("d5"), 1), (sq("d6"), 2)]
    # Leaving the board on the side never wraps onto the next rank
    assert steps(sq("g4"), (0, 1), 7) == [(sq("h4"), 1)]


def test_far_moves_stop_at_first_occupied_square() -> None:
    board = BoardState.from_pieces(
        {
            sq("a1"): (PieceType.ROOK, Player.WHITE),
            sq("a4"): (PieceType.PAWN, Player.BLACK),
            sq("d1"): (PieceType.PAWN, Player.WHITE),
        }
    )
    up = board.far_moves(sq("a1"), [(1, 0)], 7, True, True, Player.WHITE)
    assert up == [(sq("a2"), 1), (sq("a3"), 2), (sq("a4"), 3)]

    right = board.far_moves(sq("a1"), [(0, 1)], 7, True, True, Player.WHITE)
    assert right == [(sq("b1"), 1), (sq("c1"), 2)]

    quiet = board.far_moves(sq("a1"), [(1, 0)], 7, True, False, Player.WHITE)
    assert quiet == [(sq("a2"), 1), (sq("a3"), 2)]

    captures = board.far_moves(sq("a1"), [(1, 0), (0, 1)], 7, False, True, Player.WHITE)
    assert captures == [(sq("a4"), 3)]


def test_unmoved_tag_is_one_way() -> None:
    assert PieceType.INIT_KING.moved() is PieceType.KING
    assert PieceType.INIT_ROOK.moved() is PieceType.ROOK
    assert PieceType.INIT_PAWN.moved() is PieceType.PAWN
    for kind in (PieceType.KING, PieceType.ROOK, PieceType.PAWN, PieceType.QUEEN):
        assert kind.moved() is kind


def test_initial_board_layout() -> None:
    board = BoardState.initial()
    assert board.piece_at(sq("e1")) == (PieceType.INIT_KING, Player.WHITE)
    assert board.piece_at(sq("e8")) == (PieceType.INIT_KING, Player.BLACK)
    assert board.piece_at(sq("d1")) == (PieceType.QUEEN, Player.WHITE)
    assert board.piece_at(sq("h8")) == (PieceType.INIT_ROOK, Player.BLACK)
    assert board.piece_at(sq("c7")) == (PieceType.INIT_PAWN, Player.BLACK)
    assert board.piece_at(sq("e4")) is None
    assert len(list(board.pieces())) == 32
    assert len(board.pieces_with_pos(Player.WHITE)) == 16


def test_piece_at_rejects_off_board_square() -> None:
    board = BoardState.initial()
    with pytest.raises(ValueError):
        board.piece_at(64)
    with pytest.raises(ValueError):
        board.piece_at(-1)


def test_board_requires_64_squares() -> None:
    with pytest.raises(ValueError):
        BoardState(fields=(None,) * 63)

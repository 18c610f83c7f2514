"""Evaluation heuristics.

Pure, deterministic, and side-effect free. Scores are from White's
perspective: positive favors White.
"""

from __future__ import annotations

from typing import Dict, Final

from src.engine.board import PieceType, Player
from src.engine.state import GameState


# Material weights; unmoved variants weigh the same as their plain kind
PIECE_VALUES: Final[Dict[PieceType, int]] = {
    PieceType.INIT_KING: 0,
    PieceType.KING: 0,
    PieceType.QUEEN: 90,
    PieceType.INIT_ROOK: 50,
    PieceType.ROOK: 50,
    PieceType.BISHOP: 30,
    PieceType.KNIGHT: 30,
    PieceType.INIT_PAWN: 10,
    PieceType.PAWN: 10,
}

SIGN: Final[Dict[Player, int]] = {Player.WHITE: 1, Player.BLACK: -1}


def evaluate(state: GameState) -> int:
    """Return the signed weighted material sum of ``state``."""
    return sum(SIGN[player] * PIECE_VALUES[kind] for kind, player in state.board.pieces())


def material(state: GameState, player: Player) -> int:
    """Return the unsigned material ``player`` has on the board."""
    return sum(PIECE_VALUES[kind] for kind, owner in state.board.pieces() if owner is player)

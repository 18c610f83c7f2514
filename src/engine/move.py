from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .board import PieceType


PROMOTION_LETTERS: Dict[PieceType, str] = {
    PieceType.QUEEN: "q",
    PieceType.ROOK: "r",
    PieceType.BISHOP: "b",
    PieceType.KNIGHT: "n",
}
LETTER_TO_PROMOTION = {v: k for k, v in PROMOTION_LETTERS.items()}


@dataclass(frozen=True)
class Move:
    """A move as a user types it; the engine itself works on successor states.

    Attributes:
        from_sq (int): Origin square index (0-based).
        to_sq (int): Destination square index (0-based). For castling this
            is the king's landing square.
        promotion (Optional[PieceType]): Promoted piece kind, if any.
    """

    from_sq: int
    to_sq: int
    promotion: Optional[PieceType] = None

    def to_uci(self) -> str:
        """Serialize the move into long algebraic UCI form (``"e2e4"``, ``"e7e8q"``)."""
        promo = PROMOTION_LETTERS[self.promotion] if self.promotion is not None else ""
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + promo


def parse_uci(uci: str) -> Move:
    """Parse a UCI move string.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    from_sq = str_to_square(uci[0:2])
    to_sq = str_to_square(uci[2:4])
    promo: Optional[PieceType] = None
    if len(uci) == 5:
        letter = uci[4].lower()
        if letter not in LETTER_TO_PROMOTION:
            raise ValueError(f"invalid promotion piece: {letter!r}")
        promo = LETTER_TO_PROMOTION[letter]
    return Move(from_sq, to_sq, promo)


def str_to_square(s: str) -> int:
    """Convert algebraic notation (``"e4"``) into a 0-based square index.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    return (int(s[1]) - 1) * 8 + (ord(s[0]) - ord("a"))


def square_to_str(idx: int) -> str:
    if idx < 0 or idx > 63:
        raise ValueError(f"invalid square index: {idx}")
    row, col = divmod(idx, 8)
    return chr(ord("a") + col) + str(row + 1)

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple


class PieceType(Enum):
    """Piece kinds, including the "unmoved" variants.

    The ``INIT_*`` variants mark a king, rook or pawn that has never moved.
    Moving demotes them to the plain variant for good.
    """

    INIT_KING = "InitKing"
    KING = "King"
    QUEEN = "Queen"
    INIT_ROOK = "InitRook"
    ROOK = "Rook"
    BISHOP = "Bishop"
    KNIGHT = "Knight"
    INIT_PAWN = "InitPawn"
    PAWN = "Pawn"

    def moved(self) -> "PieceType":
        """Return the variant this piece becomes after it moves."""
        return _DEMOTED.get(self, self)

    @property
    def is_king(self) -> bool:
        return self in (PieceType.INIT_KING, PieceType.KING)

    @property
    def is_rook(self) -> bool:
        return self in (PieceType.INIT_ROOK, PieceType.ROOK)

    @property
    def is_pawn(self) -> bool:
        return self in (PieceType.INIT_PAWN, PieceType.PAWN)


_DEMOTED: Dict[PieceType, PieceType] = {
    PieceType.INIT_KING: PieceType.KING,
    PieceType.INIT_ROOK: PieceType.ROOK,
    PieceType.INIT_PAWN: PieceType.PAWN,
}


class Player(Enum):
    WHITE = "White"
    BLACK = "Black"

    @property
    def opponent(self) -> "Player":
        return Player.BLACK if self is Player.WHITE else Player.WHITE


Piece = Tuple[PieceType, Player]
Direction = Tuple[int, int]  # (row delta, column delta)

STRAIGHT: Tuple[Direction, ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))
DIAGONAL: Tuple[Direction, ...] = ((1, 1), (1, -1), (-1, 1), (-1, -1))
STRAIGHT_AND_DIAGONAL: Tuple[Direction, ...] = STRAIGHT + DIAGONAL
KNIGHT_LEAPS: Tuple[Direction, ...] = (
    (2, 1),
    (1, 2),
    (-1, 2),
    (-2, 1),
    (-2, -1),
    (-1, -2),
    (1, -2),
    (2, -1),
)

PAWN_PUSH: Dict[Player, Tuple[Direction, ...]] = {
    Player.WHITE: ((1, 0),),
    Player.BLACK: ((-1, 0),),
}
PAWN_CAPTURE: Dict[Player, Tuple[Direction, ...]] = {
    Player.WHITE: ((1, 1), (1, -1)),
    Player.BLACK: ((-1, 1), (-1, -1)),
}
# Row a pawn promotes on
PROMOTION_ROW: Dict[Player, int] = {Player.WHITE: 7, Player.BLACK: 0}
PROMOTION_KINDS: Tuple[PieceType, ...] = (
    PieceType.QUEEN,
    PieceType.ROOK,
    PieceType.BISHOP,
    PieceType.KNIGHT,
)

SLIDE = 7

_HOME_ROW: Tuple[PieceType, ...] = (
    PieceType.INIT_ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
    PieceType.INIT_KING,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.INIT_ROOK,
)


class MissingKingError(RuntimeError):
    """Raised when a board has no king for the queried player."""


def pos_from_rowcol(row: int, col: int) -> Optional[int]:
    """Return the square index for ``(row, col)`` or ``None`` when off-board."""
    if 0 <= row < 8 and 0 <= col < 8:
        return row * 8 + col
    return None


def steps(origin: int, direction: Direction, max_steps: int) -> List[Tuple[int, int]]:
    """Walk from ``origin`` along ``direction``.

    Args:
        origin (int): Starting square (not included in the result).
        direction (Direction): Row and column delta per step.
        max_steps (int): Upper bound on the walked distance.

    Returns:
        List[Tuple[int, int]]: ``(square, distance)`` pairs in walking order,
            cut off at the board edge.
    """
    row, col = divmod(origin, 8)
    dr, dc = direction
    out: List[Tuple[int, int]] = []
    for dist in range(1, max_steps + 1):
        sq = pos_from_rowcol(row + dr * dist, col + dc * dist)
        if sq is None:
            break
        out.append((sq, dist))
    return out


@dataclass(frozen=True)
class EnPassantRecord:
    """The last double step: pre-move ply, the square passed over, the pawn's square."""

    ply: int
    skipped: int
    target: int

    def is_open(self, ply: int) -> bool:
        return ply == self.ply + 1 and 0 <= self.skipped < 64


# Off-board squares so the record never matches a destination
NO_EN_PASSANT = EnPassantRecord(ply=0, skipped=0xFF, target=0xFF)


@dataclass(frozen=True)
class BoardState:
    """Piece placement plus the remembered en-passant opportunity.

    Notes:
    - Squares are 0..63 (a1=0 .. h8=63), ``row * 8 + col`` with row 0 being
      White's home rank.
    - Values are immutable; transitions build new boards.
    """

    fields: Tuple[Optional[Piece], ...]
    en_passant: EnPassantRecord = NO_EN_PASSANT

    def __post_init__(self) -> None:
        if len(self.fields) != 64:
            raise ValueError("board must have exactly 64 squares")

    @classmethod
    def initial(cls) -> "BoardState":
        """Return the standard starting placement with all kings/rooks/pawns unmoved."""
        fields: List[Optional[Piece]] = [None] * 64
        for col, kind in enumerate(_HOME_ROW):
            fields[col] = (kind, Player.WHITE)
            fields[8 + col] = (PieceType.INIT_PAWN, Player.WHITE)
            fields[48 + col] = (PieceType.INIT_PAWN, Player.BLACK)
            fields[56 + col] = (kind, Player.BLACK)
        return cls(fields=tuple(fields))

    @classmethod
    def from_pieces(
        cls, pieces: Dict[int, Piece], en_passant: EnPassantRecord = NO_EN_PASSANT
    ) -> "BoardState":
        fields: List[Optional[Piece]] = [None] * 64
        for sq, piece in pieces.items():
            _check_square(sq)
            fields[sq] = piece
        return cls(fields=tuple(fields), en_passant=en_passant)

    def piece_at(self, sq: int) -> Optional[Piece]:
        _check_square(sq)
        return self.fields[sq]

    def pieces(self) -> Iterable[Piece]:
        return (p for p in self.fields if p is not None)

    def pieces_with_pos(self, player: Player) -> List[Tuple[PieceType, int]]:
        return [
            (piece[0], sq)
            for sq, piece in enumerate(self.fields)
            if piece is not None and piece[1] is player
        ]

    def far_moves(
        self,
        origin: int,
        directions: Sequence[Direction],
        max_steps: int,
        allow_empty: bool,
        allow_capture: bool,
        mover: Player,
    ) -> List[Tuple[int, int]]:
        """Collect reachable squares along each ray.

        Each ray stops at the first occupied square. That square qualifies only
        when ``allow_capture`` is set and it holds a piece of the other color;
        empty squares qualify when ``allow_empty`` is set.

        Returns:
            List[Tuple[int, int]]: ``(square, distance)`` pairs.
        """
        out: List[Tuple[int, int]] = []
        for direction in directions:
            for sq, dist in steps(origin, direction, max_steps):
                occupant = self.fields[sq]
                if occupant is None:
                    if allow_empty:
                        out.append((sq, dist))
                    continue
                if allow_capture and occupant[1] is not mover:
                    out.append((sq, dist))
                break
        return out

    # --- Attack detection ---
    def square_attacked(self, sq: int, defender: Player) -> bool:
        """Return True if a piece of ``defender``'s opponent attacks ``sq``."""
        for other, dist in self.far_moves(sq, STRAIGHT, SLIDE, False, True, defender):
            kind = self.fields[other][0]  # type: ignore[index]
            if kind.is_rook or kind is PieceType.QUEEN:
                return True
            if kind.is_king and dist == 1:
                return True
        for other, dist in self.far_moves(sq, DIAGONAL, SLIDE, False, True, defender):
            kind = self.fields[other][0]  # type: ignore[index]
            if kind is PieceType.BISHOP or kind is PieceType.QUEEN:
                return True
            if kind.is_king and dist == 1:
                return True
        for other, _ in self.far_moves(sq, KNIGHT_LEAPS, 1, False, True, defender):
            if self.fields[other][0] is PieceType.KNIGHT:  # type: ignore[index]
                return True
        # An attacking pawn sits where the defender's own pawn would capture to.
        for other, _ in self.far_moves(sq, PAWN_CAPTURE[defender], 1, False, True, defender):
            if self.fields[other][0].is_pawn:  # type: ignore[index]
                return True
        return False

    def king_square(self, player: Player) -> int:
        for sq, piece in enumerate(self.fields):
            if piece is not None and piece[1] is player and piece[0].is_king:
                return sq
        raise MissingKingError(f"no {player.value} king on the board")

    def king_in_check(self, player: Player) -> bool:
        return self.square_attacked(self.king_square(player), player)


def _check_square(sq: int) -> None:
    if not isinstance(sq, int) or sq < 0 or sq > 63:
        raise ValueError(f"invalid square index: {sq!r}")

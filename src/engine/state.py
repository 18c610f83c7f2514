from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .board import (
    DIAGONAL,
    KNIGHT_LEAPS,
    NO_EN_PASSANT,
    PAWN_CAPTURE,
    PAWN_PUSH,
    PROMOTION_KINDS,
    PROMOTION_ROW,
    SLIDE,
    STRAIGHT,
    STRAIGHT_AND_DIAGONAL,
    BoardState,
    EnPassantRecord,
    Piece,
    PieceType,
    Player,
    pos_from_rowcol,
)
from .move import Move, square_to_str, str_to_square


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

# Plies without capture or pawn move until the game is drawn
FIFTY_MOVE_PLIES = 150

PIECE_TO_CHAR = {
    PieceType.INIT_KING: "k",
    PieceType.KING: "k",
    PieceType.QUEEN: "q",
    PieceType.INIT_ROOK: "r",
    PieceType.ROOK: "r",
    PieceType.BISHOP: "b",
    PieceType.KNIGHT: "n",
    PieceType.INIT_PAWN: "p",
    PieceType.PAWN: "p",
}
CHAR_TO_PIECE = {
    "k": PieceType.KING,
    "q": PieceType.QUEEN,
    "r": PieceType.ROOK,
    "b": PieceType.BISHOP,
    "n": PieceType.KNIGHT,
    "p": PieceType.PAWN,
}
# castling right -> (player, king square, rook square)
CASTLING_SQUARES = {
    "K": (Player.WHITE, 4, 7),
    "Q": (Player.WHITE, 4, 0),
    "k": (Player.BLACK, 60, 63),
    "q": (Player.BLACK, 60, 56),
}
PAWN_HOME_ROW = {Player.WHITE: 1, Player.BLACK: 6}

Successor = Tuple[int, "GameState"]


@dataclass(frozen=True)
class GameState:
    """Immutable game position: board, ply counter and last irreversible event.

    Responsibility: generate legal successor states. Every transition returns
    a new value; nothing is mutated in place.

    Attributes:
        board (BoardState): Piece placement and en-passant record.
        ply (int): Half-moves played so far; even means White to move.
        last_event_ply (int): Ply at which the most recent capture or pawn
            move happened.
    """

    board: BoardState
    ply: int = 0
    last_event_ply: int = 0

    @classmethod
    def initial(cls) -> "GameState":
        return cls(board=BoardState.initial())

    def turn(self) -> Player:
        return Player.WHITE if self.ply % 2 == 0 else Player.BLACK

    def fifty_move_rule_draw(self) -> bool:
        return self.ply - self.last_event_ply >= FIFTY_MOVE_PLIES

    def king_in_check(self, player: Optional[Player] = None) -> bool:
        return self.board.king_in_check(player if player is not None else self.turn())

    # --- Move generation ---
    def legal_moves(self) -> List["GameState"]:
        """Return every legal successor state for the side to move."""
        out: List[GameState] = []
        for kind, sq in self.board.pieces_with_pos(self.turn()):
            out.extend(state for _, state in self._legal_piece_moves(kind, sq))
        return out

    def legal_moves_for_piece(self, square: int) -> List[Successor]:
        """Return ``(destination, successor)`` pairs for the piece on ``square``.

        Raises:
            ValueError: If ``square`` is off the board, empty, or holds a piece
                of the side not to move.
        """
        piece = self.board.piece_at(square)
        if piece is None:
            raise ValueError(f"no piece on {square_to_str(square)}")
        if piece[1] is not self.turn():
            raise ValueError(
                f"piece on {square_to_str(square)} does not belong to {self.turn().value}"
            )
        return self._legal_piece_moves(piece[0], square)

    def pseudo_legal_moves(self) -> List["GameState"]:
        out: List[GameState] = []
        for kind, sq in self.board.pieces_with_pos(self.turn()):
            out.extend(state for _, state in self._pseudo_piece_moves(kind, sq))
        return out

    def checkmate(self) -> bool:
        return not self.legal_moves() and self.king_in_check()

    def stalemate(self) -> bool:
        return not self.legal_moves() and not self.king_in_check()

    def _legal_piece_moves(self, kind: PieceType, sq: int) -> List[Successor]:
        mover = self.turn()
        return [
            (dest, state)
            for dest, state in self._pseudo_piece_moves(kind, sq)
            if not state.board.king_in_check(mover)
        ]

    def _pseudo_piece_moves(self, kind: PieceType, sq: int) -> List[Successor]:
        mover = self.turn()
        board = self.board
        if kind.is_king:
            targets = board.far_moves(sq, STRAIGHT_AND_DIAGONAL, 1, True, True, mover)
            out = [(dest, self._step(kind, sq, dest)) for dest, _ in targets]
            if kind is PieceType.INIT_KING:
                out.extend(self._castlings(sq))
            return out
        if kind is PieceType.QUEEN:
            targets = board.far_moves(sq, STRAIGHT_AND_DIAGONAL, SLIDE, True, True, mover)
        elif kind.is_rook:
            targets = board.far_moves(sq, STRAIGHT, SLIDE, True, True, mover)
        elif kind is PieceType.BISHOP:
            targets = board.far_moves(sq, DIAGONAL, SLIDE, True, True, mover)
        elif kind is PieceType.KNIGHT:
            targets = board.far_moves(sq, KNIGHT_LEAPS, 1, True, True, mover)
        else:
            return self._pawn_moves(kind, sq)
        return [(dest, self._step(kind, sq, dest)) for dest, _ in targets]

    def _pawn_moves(self, kind: PieceType, sq: int) -> List[Successor]:
        mover = self.turn()
        board = self.board
        out: List[Successor] = []
        reach = 2 if kind is PieceType.INIT_PAWN else 1
        for dest, dist in board.far_moves(sq, PAWN_PUSH[mover], reach, True, False, mover):
            state = self._step(kind, sq, dest, irreversible=True)
            if dist == 2:
                record = EnPassantRecord(ply=self.ply, skipped=(sq + dest) // 2, target=dest)
                state = replace(state, board=replace(state.board, en_passant=record))
            out.extend(self._promotions(dest, state))
        for dest, _ in board.far_moves(sq, PAWN_CAPTURE[mover], 1, False, True, mover):
            out.extend(self._promotions(dest, self._step(kind, sq, dest, irreversible=True)))
        record = board.en_passant
        if record.is_open(self.ply):
            for dest, _ in board.far_moves(sq, PAWN_CAPTURE[mover], 1, True, False, mover):
                if dest != record.skipped:
                    continue
                state = self._step(kind, sq, dest, irreversible=True)
                out.append((dest, state._with_cleared(record.target)))
        return out

    def _promotions(self, dest: int, state: "GameState") -> List[Successor]:
        mover = self.turn()
        if dest // 8 != PROMOTION_ROW[mover]:
            return [(dest, state)]
        out: List[Successor] = []
        for kind in PROMOTION_KINDS:
            fields = list(state.board.fields)
            fields[dest] = (kind, mover)
            out.append((dest, replace(state, board=replace(state.board, fields=tuple(fields)))))
        return out

    def _castlings(self, king_sq: int) -> List[Successor]:
        mover = self.turn()
        board = self.board
        row, king_col = divmod(king_sq, 8)
        out: List[Successor] = []
        for direction, rook_col in ((1, 7), (-1, 0)):
            rook_sq = pos_from_rowcol(row, rook_col)
            transit = pos_from_rowcol(row, king_col + direction)
            landing = pos_from_rowcol(row, king_col + 2 * direction)
            if rook_sq is None or transit is None or landing is None:
                continue
            if board.fields[rook_sq] != (PieceType.INIT_ROOK, mover):
                continue
            lo, hi = sorted((king_sq, rook_sq))
            if any(board.fields[s] is not None for s in range(lo + 1, hi)):
                continue
            if any(board.square_attacked(s, mover) for s in (king_sq, transit, landing)):
                continue
            fields = list(board.fields)
            fields[king_sq] = None
            fields[rook_sq] = None
            fields[landing] = (PieceType.KING, mover)
            fields[transit] = (PieceType.ROOK, mover)
            state = replace(self, board=replace(board, fields=tuple(fields)), ply=self.ply + 1)
            out.append((landing, state))
        return out

    def _step(
        self, kind: PieceType, from_sq: int, to_sq: int, *, irreversible: bool = False
    ) -> "GameState":
        fields = list(self.board.fields)
        capture = fields[to_sq] is not None
        fields[from_sq] = None
        fields[to_sq] = (kind.moved(), self.turn())
        ply = self.ply + 1
        return GameState(
            board=replace(self.board, fields=tuple(fields)),
            ply=ply,
            last_event_ply=ply if (capture or irreversible) else self.last_event_ply,
        )

    def _with_cleared(self, sq: int) -> "GameState":
        fields = list(self.board.fields)
        fields[sq] = None
        return replace(self, board=replace(self.board, fields=tuple(fields)))

    # --- Moves in notation ---
    def apply(self, move: Move) -> "GameState":
        """Return the successor reached by ``move``.

        Raises:
            ValueError: If ``move`` is not legal in this position.
        """
        for _, state in self.legal_moves_for_piece(move.from_sq):
            if self.move_to(state) == move:
                return state
        raise ValueError(f"illegal move: {move.to_uci()}")

    def move_to(self, successor: "GameState") -> Move:
        """Recover the move leading from this state to ``successor``.

        Castling is reported as the king's move.

        Raises:
            ValueError: If the two states are not related by a single move.
        """
        mover = self.turn()
        before = self.board.fields
        after = successor.board.fields
        vacated = [
            sq
            for sq in range(64)
            if before[sq] is not None and before[sq][1] is mover and after[sq] is None  # type: ignore[index]
        ]
        arrived = [
            sq
            for sq in range(64)
            if after[sq] is not None and after[sq][1] is mover and after[sq] != before[sq]  # type: ignore[index]
        ]
        from_sq = _pick_square(vacated, before)
        to_sq = _pick_square(arrived, after)
        if from_sq is None or to_sq is None:
            raise ValueError("states are not one move apart")
        moved: Piece = before[from_sq]  # type: ignore[assignment]
        landed: Piece = after[to_sq]  # type: ignore[assignment]
        promotion = landed[0] if moved[0].is_pawn and not landed[0].is_pawn else None
        return Move(from_sq, to_sq, promotion)

    # --- FEN ---
    @classmethod
    def from_fen(cls, fen: str) -> "GameState":
        """Create a state from a Forsyth-Edwards Notation (FEN) string.

        Castling rights become unmoved kings and rooks, pawns on their home
        rank are unmoved, the en-passant square becomes a record from the
        previous ply, and the halfmove clock sets ``last_event_ply``.

        Raises:
            ValueError: If ``fen`` is malformed, castling rights do not match
                the placement, a side has no or several kings, or the side not
                to move is in check.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise ValueError("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise ValueError("FEN board must have 8 ranks")
        fields: List[Optional[Piece]] = [None] * 64
        for row, rank in enumerate(ranks[::-1]):
            col = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    col += n
                    continue
                if ch.lower() not in CHAR_TO_PIECE:
                    raise ValueError(f"invalid piece in FEN: {ch!r}")
                if col >= 8:
                    raise ValueError("too many squares in FEN rank")
                player = Player.WHITE if ch.isupper() else Player.BLACK
                kind = CHAR_TO_PIECE[ch.lower()]
                if kind is PieceType.PAWN and row == PAWN_HOME_ROW[player]:
                    kind = PieceType.INIT_PAWN
                fields[row * 8 + col] = (kind, player)
                col += 1
            if col != 8:
                raise ValueError("rank does not sum to 8 squares in FEN")

        if stm not in ("w", "b"):
            raise ValueError("side to move must be 'w' or 'b'")

        if castling != "-":
            for ch in castling:
                if ch not in CASTLING_SQUARES:
                    raise ValueError("invalid castling rights")
                player, king_sq, rook_sq = CASTLING_SQUARES[ch]
                king, rook = fields[king_sq], fields[rook_sq]
                if king is None or king[1] is not player or not king[0].is_king:
                    raise ValueError("castling rights do not match king placement")
                if rook is None or rook[1] is not player or not rook[0].is_rook:
                    raise ValueError("castling rights do not match rook placement")
                fields[king_sq] = (PieceType.INIT_KING, player)
                fields[rook_sq] = (PieceType.INIT_ROOK, player)

        try:
            halfmove_clock = int(halfmove)
            fullmove_number = int(fullmove)
        except ValueError as e:
            raise ValueError("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise ValueError("invalid move counters in FEN")
        ply = (fullmove_number - 1) * 2 + (1 if stm == "b" else 0)

        record = NO_EN_PASSANT
        if ep != "-":
            try:
                skipped = str_to_square(ep)
            except ValueError as e:
                raise ValueError("invalid en passant square") from e
            expected_row = 5 if stm == "w" else 2
            if skipped // 8 != expected_row:
                raise ValueError("invalid en passant square rank")
            target = skipped - 8 if stm == "w" else skipped + 8
            record = EnPassantRecord(ply=ply - 1, skipped=skipped, target=target)

        for player in Player:
            kings = sum(1 for p in fields if p is not None and p[1] is player and p[0].is_king)
            if kings != 1:
                raise ValueError(f"FEN must contain exactly one {player.value} king")

        state = cls(
            board=BoardState(fields=tuple(fields), en_passant=record),
            ply=ply,
            last_event_ply=ply - halfmove_clock,
        )
        if state.king_in_check(state.turn().opponent):
            raise ValueError("side not to move is in check")
        return state

    def to_fen(self) -> str:
        """Serialize the position into FEN; castling rights come from unmoved tags."""
        ranks: List[str] = []
        for row in range(7, -1, -1):
            run = 0
            out = []
            for col in range(8):
                piece = self.board.fields[row * 8 + col]
                if piece is None:
                    run += 1
                    continue
                if run:
                    out.append(str(run))
                    run = 0
                ch = PIECE_TO_CHAR[piece[0]]
                out.append(ch.upper() if piece[1] is Player.WHITE else ch)
            if run:
                out.append(str(run))
            ranks.append("".join(out))

        rights = "".join(
            ch
            for ch, (player, king_sq, rook_sq) in CASTLING_SQUARES.items()
            if self.board.fields[king_sq] == (PieceType.INIT_KING, player)
            and self.board.fields[rook_sq] == (PieceType.INIT_ROOK, player)
        )
        record = self.board.en_passant
        ep = square_to_str(record.skipped) if record.is_open(self.ply) else "-"
        stm = "w" if self.turn() is Player.WHITE else "b"
        halfmove = self.ply - self.last_event_ply
        fullmove = self.ply // 2 + 1
        return f"{'/'.join(ranks)} {stm} {rights or '-'} {ep} {halfmove} {fullmove}"


def _pick_square(candidates: List[int], fields: Tuple[Optional[Piece], ...]) -> Optional[int]:
    if len(candidates) == 1:
        return candidates[0]
    kings = [sq for sq in candidates if fields[sq][0].is_king]  # type: ignore[index]
    return kings[0] if len(kings) == 1 else None

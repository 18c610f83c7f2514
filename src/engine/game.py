from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .move import Move
from .state import GameState


@dataclass
class Game:
    """Game session over an acyclic chain of immutable states.

    Responsibility: hold the current state, its predecessors (for undo) and
    the moves that connected them.
    """

    state: GameState
    history: List[GameState] = field(default_factory=list)
    move_stack: List[Move] = field(default_factory=list)

    @classmethod
    def new(cls) -> "Game":
        return cls(state=GameState.initial())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        return cls(state=GameState.from_fen(fen))

    def to_fen(self) -> str:
        return self.state.to_fen()

    def legal_moves(self) -> List[Move]:
        return [self.state.move_to(s) for s in self.state.legal_moves()]

    def apply_move(self, move: Move) -> None:
        # GameState.apply raises ValueError on illegal moves
        self.advance(self.state.apply(move))

    def advance(self, successor: GameState) -> None:
        """Move to ``successor``, which must be one legal move away."""
        move = self.state.move_to(successor)
        self.history.append(self.state)
        self.move_stack.append(move)
        self.state = successor

    def undo_move(self) -> None:
        if not self.move_stack:
            raise ValueError("no moves to undo")
        self.move_stack.pop()
        self.state = self.history.pop()

    # --- State flags for protocol ---
    def in_check(self) -> bool:
        return self.state.king_in_check()

    def checkmate(self) -> bool:
        return self.state.checkmate()

    def stalemate(self) -> bool:
        return self.state.stalemate()

    def is_draw(self) -> bool:
        return self.state.fifty_move_rule_draw() or self.stalemate()

    def is_over(self) -> bool:
        return self.is_draw() or self.checkmate()

    def move_history_uci(self) -> List[str]:
        return [m.to_uci() for m in self.move_stack]

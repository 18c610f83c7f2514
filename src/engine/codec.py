"""Structured (JSON) encoding of game states.

The encoding keeps every field of a state: the unmoved variants of kings,
rooks and pawns and the en-passant record. Dropping either would silently
change which castlings and double steps are legal after decoding.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .board import NO_EN_PASSANT, BoardState, EnPassantRecord, PieceType, Player
from .state import GameState


class EnPassantModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    ply: int
    skipped: int
    target: int

    @model_validator(mode="after")
    def _check_squares(self) -> "EnPassantModel":
        # Either the "no double step" sentinel or a real skipped/target pair
        sentinel = NO_EN_PASSANT.skipped
        if self.skipped == sentinel and self.target == sentinel:
            return self
        if not (0 <= self.skipped < 64 and 0 <= self.target < 64):
            raise ValueError("en passant squares must be 0..63 or both 255")
        # White skips rank 3 and lands on rank 4; Black skips rank 6 and lands on rank 5
        expected = {2: self.skipped + 8, 5: self.skipped - 8}.get(self.skipped // 8)
        if self.target != expected:
            raise ValueError("en passant target must be the pawn that passed the skipped square")
        return self


class BoardModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    squares: List[Optional[Tuple[PieceType, Player]]] = Field(
        ..., min_length=64, max_length=64, description="64 squares, a1 first, null when empty"
    )
    en_passant: EnPassantModel


class GameStateModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    ply: int = Field(..., ge=0)
    last_event_ply: int
    board: BoardModel


def to_model(state: GameState) -> GameStateModel:
    record = state.board.en_passant
    return GameStateModel(
        ply=state.ply,
        last_event_ply=state.last_event_ply,
        board=BoardModel(
            squares=list(state.board.fields),
            en_passant=EnPassantModel(
                ply=record.ply, skipped=record.skipped, target=record.target
            ),
        ),
    )


def from_model(model: GameStateModel) -> GameState:
    record = model.board.en_passant
    return GameState(
        board=BoardState(
            fields=tuple(model.board.squares),
            en_passant=EnPassantRecord(
                ply=record.ply, skipped=record.skipped, target=record.target
            ),
        ),
        ply=model.ply,
        last_event_ply=model.last_event_ply,
    )


def encode_state(state: GameState) -> Dict[str, Any]:
    """Encode ``state`` into JSON-compatible primitives."""
    return to_model(state).model_dump(mode="json")


def decode_state(data: Dict[str, Any]) -> GameState:
    """Decode primitives produced by :func:`encode_state`.

    Raises:
        pydantic.ValidationError: If ``data`` does not describe a state (a
            ``ValueError`` subclass).
    """
    return from_model(GameStateModel.model_validate(data))


def to_json(state: GameState) -> str:
    return to_model(state).model_dump_json()


def from_json(text: str) -> GameState:
    return from_model(GameStateModel.model_validate_json(text))

from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from ... import config
from ...engine.board import MissingKingError
from ...engine.codec import GameStateModel, from_model, to_model
from ...engine.game import Game
from ...engine.move import parse_uci, square_to_str, str_to_square
from ...engine.perft import perft as perft_nodes
from ...engine.state import STARTPOS_FEN, GameState
from ...search.service import SearchResult, SearchService
from .error import (
    exception_handler,
    http_exception_handler,
    invariant_error_handler,
    request_validation_exception_handler,
    value_error_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore


logger = logging.getLogger(__name__)


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str
    state: GameStateModel


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    move: str = Field(..., description="UCI move string, e.g., e2e4")


class EngineMoveRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=1, le=config.MAX_SEARCH_DEPTH)


class GameStatus(BaseModel):
    game_id: str
    fen: str
    state: GameStateModel
    turn: str
    legal_moves: List[str]
    in_check: bool
    checkmate: bool
    stalemate: bool
    draw: bool
    last_move: Optional[str]
    move_history: List[str]


class PieceMove(BaseModel):
    destination: int
    square: str
    move: str
    state: GameStateModel


class PieceMovesResponse(BaseModel):
    square: str
    moves: List[PieceMove]


class EngineMoveResponse(BaseModel):
    move: Optional[str]
    value: int
    candidates: List[str]
    nodes: int
    depth: int
    time_ms: int
    state: Optional[GameStateModel]


class GameEngineMoveResponse(EngineMoveResponse):
    game: GameStatus


class StatePieceMovesRequest(BaseModel):
    state: GameStateModel
    square: int = Field(..., ge=0, le=63)


class StateEngineMoveRequest(BaseModel):
    state: GameStateModel
    depth: Optional[int] = Field(default=None, ge=1, le=config.MAX_SEARCH_DEPTH)


class PerftRequest(BaseModel):
    fen: str = STARTPOS_FEN
    depth: int = Field(default=1, ge=0, le=4)


def create_app(
    service: Optional[SearchService] = None, store: Optional[InMemorySessionStore] = None
) -> FastAPI:
    app = FastAPI(title="Chai Chess API", version="0.1.0")

    logging.basicConfig(level=config.LOG_LEVEL)
    config.log_overrides()

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(MissingKingError, invariant_error_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = store or InMemorySessionStore()
    engine = service or SearchService(workers=config.SEARCH_WORKERS)

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    # --- Sessions ---
    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game() -> CreateGameResponse:
        game_id = store.create(Game.new())
        game = _require_game(store, game_id)
        logger.info("created game %s", game_id)
        return CreateGameResponse(game_id=game_id, fen=game.to_fen(), state=to_model(game.state))

    @app.get("/api/games/{game_id}/state", response_model=GameStatus)
    async def get_state(game_id: str) -> GameStatus:
        return _status(game_id, _require_game(store, game_id))

    @app.post("/api/games/{game_id}/position", response_model=GameStatus)
    async def set_position(game_id: str, req: SetPositionRequest) -> GameStatus:
        _require_game(store, game_id)
        try:
            store.set(game_id, Game.from_fen(req.fen))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        return _status(game_id, _require_game(store, game_id))

    @app.post("/api/games/{game_id}/move", response_model=GameStatus)
    async def make_move(game_id: str, req: MoveRequest) -> GameStatus:
        move = parse_uci(req.move)
        with store.locked(game_id) as game:
            game = _found(game)
            # illegal moves surface as 400 via the ValueError handler
            game.apply_move(move)
            return _status(game_id, game)

    @app.post("/api/games/{game_id}/undo", response_model=GameStatus)
    async def undo(game_id: str) -> GameStatus:
        with store.locked(game_id) as game:
            game = _found(game)
            game.undo_move()
            return _status(game_id, game)

    @app.get("/api/games/{game_id}/pieces/{square}/moves", response_model=PieceMovesResponse)
    async def piece_moves(game_id: str, square: str) -> PieceMovesResponse:
        game = _require_game(store, game_id)
        return _piece_moves(game.state, str_to_square(square))

    @app.post("/api/games/{game_id}/engine-move", response_model=GameEngineMoveResponse)
    def engine_move(game_id: str, req: EngineMoveRequest) -> GameEngineMoveResponse:
        depth = req.depth or config.SEARCH_DEPTH
        before = _require_game(store, game_id).state
        start = time.perf_counter()
        chosen, res = engine.choose_move(before, depth)
        time_ms = int((time.perf_counter() - start) * 1000)
        if chosen is None:
            raise HTTPException(status_code=409, detail="game is over")
        out = _engine_response(before, chosen, res, depth, time_ms)
        # The search runs unlocked; only advance if nobody moved meanwhile
        with store.locked(game_id) as game:
            game = _found(game)
            if game.state is not before:
                raise HTTPException(status_code=409, detail="game changed during search")
            game.advance(chosen)
            return GameEngineMoveResponse(**out.model_dump(), game=_status(game_id, game))

    # --- Stateless: the client holds the encoded state ---
    @app.post("/api/state/new", response_model=GameStateModel)
    async def new_state() -> GameStateModel:
        return to_model(GameState.initial())

    @app.post("/api/state/piece-moves", response_model=PieceMovesResponse)
    async def state_piece_moves(req: StatePieceMovesRequest) -> PieceMovesResponse:
        return _piece_moves(from_model(req.state), req.square)

    @app.post("/api/state/engine-move", response_model=EngineMoveResponse)
    def state_engine_move(req: StateEngineMoveRequest) -> EngineMoveResponse:
        state = from_model(req.state)
        depth = req.depth or config.SEARCH_DEPTH
        start = time.perf_counter()
        chosen, res = engine.choose_move(state, depth)
        time_ms = int((time.perf_counter() - start) * 1000)
        return _engine_response(state, chosen, res, depth, time_ms)

    @app.post("/api/perft")
    def perft(req: PerftRequest) -> Dict[str, int]:
        try:
            state = GameState.from_fen(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        return {"nodes": perft_nodes(state, req.depth), "depth": req.depth}

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> Game:
    return _found(store.get(game_id))


def _found(game: Optional[Game]) -> Game:
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


def _status(game_id: str, game: Game) -> GameStatus:
    history = game.move_history_uci()
    return GameStatus(
        game_id=game_id,
        fen=game.to_fen(),
        state=to_model(game.state),
        turn=game.state.turn().value,
        legal_moves=[m.to_uci() for m in game.legal_moves()],
        in_check=game.in_check(),
        checkmate=game.checkmate(),
        stalemate=game.stalemate(),
        draw=game.is_draw(),
        last_move=history[-1] if history else None,
        move_history=history,
    )


def _piece_moves(state: GameState, square: int) -> PieceMovesResponse:
    moves = [
        PieceMove(
            destination=dest,
            square=square_to_str(dest),
            move=state.move_to(successor).to_uci(),
            state=to_model(successor),
        )
        for dest, successor in state.legal_moves_for_piece(square)
    ]
    return PieceMovesResponse(square=square_to_str(square), moves=moves)


def _engine_response(
    state: GameState,
    chosen: Optional[GameState],
    res: SearchResult,
    depth: int,
    time_ms: int,
) -> EngineMoveResponse:
    return EngineMoveResponse(
        move=state.move_to(chosen).to_uci() if chosen is not None else None,
        value=res.value,
        candidates=[state.move_to(s).to_uci() for s in res.successors],
        nodes=res.nodes,
        depth=depth,
        time_ms=time_ms,
        state=to_model(chosen) if chosen is not None else None,
    )


# Default app for non-factory servers
app = create_app()

from __future__ import annotations

import logging
import operator
import random
import sys
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from itertools import repeat
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from src.engine.board import Player
from src.engine.state import GameState
from src.eval import evaluate


logger = logging.getLogger(__name__)

Heuristic = Callable[[GameState], int]
TieBreaker = Callable[[Sequence[GameState]], GameState]

# Forced mate scores and window seeds; they dominate any heuristic value
SCORE_MAX = sys.maxsize
SCORE_MIN = -sys.maxsize

_BETTER: Dict[Player, Callable[[int, int], bool]] = {
    Player.WHITE: operator.gt,
    Player.BLACK: operator.lt,
}
# Starting value of the fold: the worst outcome for the side to move
_WORST: Dict[Player, int] = {Player.WHITE: SCORE_MIN, Player.BLACK: SCORE_MAX}


@dataclass(frozen=True)
class SearchResult:
    """Outcome of a search from one node.

    Attributes:
        value (int): Best achievable score, White-positive.
        successors (Tuple[GameState, ...]): Every child reaching ``value``,
            in generation order. Empty at leaves and terminal nodes.
        nodes (int): Nodes visited, this one included.
    """

    value: int
    successors: Tuple[GameState, ...]
    nodes: int

    @property
    def successor_set(self) -> FrozenSet[GameState]:
        return frozenset(self.successors)


def _leaf(state: GameState, depth: int, heuristic: Heuristic) -> Tuple[Optional[SearchResult], List[GameState]]:
    """Resolve leaves and terminal nodes; otherwise return the children to expand."""
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return SearchResult(heuristic(state), (), 1), []
    if state.fifty_move_rule_draw():
        return SearchResult(0, (), 1), []
    children = state.legal_moves()
    if not children:
        if state.king_in_check():
            # The side to move is mated
            return SearchResult(_WORST[state.turn()], (), 1), []
        return SearchResult(0, (), 1), []
    return None, children


def _fold(player: Player, evaluated: Iterable[Tuple[GameState, SearchResult]]) -> SearchResult:
    better = _BETTER[player]
    best = _WORST[player]
    ties: List[GameState] = []
    nodes = 1
    for child, res in evaluated:
        nodes += res.nodes
        if better(res.value, best):
            best = res.value
            ties = [child]
        elif res.value == best:
            ties.append(child)
    return SearchResult(best, tuple(ties), nodes)


def minimax(state: GameState, depth: int, heuristic: Heuristic = evaluate) -> SearchResult:
    """Plain minimax: White maximizes, Black minimizes, ties are all kept."""
    done, children = _leaf(state, depth, heuristic)
    if done is not None:
        return done
    return _fold(
        state.turn(), ((child, minimax(child, depth - 1, heuristic)) for child in children)
    )


def alphabeta(state: GameState, depth: int, heuristic: Heuristic = evaluate) -> SearchResult:
    """Alpha-beta search with bounds seeded for the side to move.

    Returns the same value as :func:`minimax`; the tie set may miss ties in
    pruned subtrees but never holds a successor minimax would not.
    """
    if state.turn() is Player.WHITE:
        return _alphabeta(state, depth, SCORE_MIN, SCORE_MAX, heuristic)
    return _alphabeta(state, depth, SCORE_MAX, SCORE_MIN, heuristic)


def _alphabeta(
    state: GameState, depth: int, gamma: int, delta: int, heuristic: Heuristic
) -> SearchResult:
    # gamma: best value the side to move can already force.
    # delta: best value the opponent will allow.
    # "better" flips with the side to move, so one branch serves both players.
    done, children = _leaf(state, depth, heuristic)
    if done is not None:
        return done
    player = state.turn()
    better = _BETTER[player]
    best = _WORST[player]
    ties: List[GameState] = []
    nodes = 1
    for child in children:
        res = _alphabeta(child, depth - 1, delta, gamma, heuristic)
        nodes += res.nodes
        if better(res.value, best):
            best = res.value
            ties = [child]
            if better(best, gamma):
                gamma = best
                # No cutoff on equality: equal siblings still belong to the tie set.
                if better(gamma, delta):
                    break
        elif res.value == best:
            ties.append(child)
    return SearchResult(best, tuple(ties), nodes)


def _search_child(
    child: GameState, depth: int, heuristic: Heuristic, use_alphabeta: bool
) -> SearchResult:
    if use_alphabeta:
        return alphabeta(child, depth, heuristic)
    return minimax(child, depth, heuristic)


def parallel_search(
    state: GameState,
    depth: int,
    heuristic: Heuristic = evaluate,
    *,
    workers: Optional[int] = None,
    use_alphabeta: bool = True,
) -> SearchResult:
    """Search each root successor in a worker process and merge the results.

    Every child is searched with a full window, so the merged tie set equals
    the minimax tie set. ``heuristic`` must be picklable (a module-level
    function).
    """
    done, children = _leaf(state, depth, heuristic)
    if done is not None:
        return done
    with ProcessPoolExecutor(max_workers=workers) as pool:
        results = list(
            pool.map(
                _search_child, children, repeat(depth - 1), repeat(heuristic), repeat(use_alphabeta)
            )
        )
    return _fold(state.turn(), zip(children, results))


class SearchService:
    """Pick engine moves: search, then break ties outside the search.

    The search itself stays deterministic; randomness lives only in the
    tie-breaker, which callers may replace (e.g. with ``lambda s: s[0]``).
    """

    def __init__(
        self,
        heuristic: Heuristic = evaluate,
        *,
        use_alphabeta: bool = True,
        workers: int = 1,
        tie_breaker: Optional[TieBreaker] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.heuristic = heuristic
        self.use_alphabeta = use_alphabeta
        self.workers = workers
        self._rng = random.Random(seed)
        self.tie_breaker: TieBreaker = tie_breaker or self._rng.choice

    def search(self, state: GameState, depth: int) -> SearchResult:
        start = time.perf_counter()
        if self.workers > 1:
            res = parallel_search(
                state,
                depth,
                self.heuristic,
                workers=self.workers,
                use_alphabeta=self.use_alphabeta,
            )
        elif self.use_alphabeta:
            res = alphabeta(state, depth, self.heuristic)
        else:
            res = minimax(state, depth, self.heuristic)
        time_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "search ply=%d depth=%d value=%d candidates=%d nodes=%d time_ms=%d",
            state.ply,
            depth,
            res.value,
            len(res.successors),
            res.nodes,
            time_ms,
        )
        return res

    def choose_move(self, state: GameState, depth: int) -> Tuple[Optional[GameState], SearchResult]:
        """Search ``state`` and pick one of the best successors.

        Returns ``None`` as the successor when the game is over at the root.

        Raises:
            ValueError: If ``depth`` is below 1.
        """
        if depth < 1:
            raise ValueError("depth must be >= 1")
        res = self.search(state, depth)
        if not res.successors:
            return None, res
        return self.tie_breaker(list(res.successors)), res

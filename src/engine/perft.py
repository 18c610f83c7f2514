from __future__ import annotations

import logging
from typing import Dict

from .state import GameState


logger = logging.getLogger(__name__)


def perft(state: GameState, depth: int) -> int:
    """Compute the perft node count for ``state`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal successors' perft(depth-1).

    Draw rules are ignored so counts match published perft tables.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1
    if depth == 1:
        return len(state.legal_moves())
    return sum(perft(child, depth - 1) for child in state.legal_moves())


def divide(state: GameState, depth: int) -> Dict[str, int]:
    """Return perft(depth - 1) per root move, keyed by UCI string."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    counts: Dict[str, int] = {}
    for child in state.legal_moves():
        counts[state.move_to(child).to_uci()] = perft(child, depth - 1)
    logger.debug("divide depth=%d moves=%d nodes=%d", depth, len(counts), sum(counts.values()))
    return counts

#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import json
import os
import platform
import sys
import time
from typing import Any, Callable, Dict, List

# Ensure repo root (which contains `src/`) is importable when running directly
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from src.engine.state import STARTPOS_FEN, GameState
from src.eval import evaluate
from src.search.service import SearchResult, alphabeta, minimax


POSITIONS: Dict[str, str] = {
    "startpos": STARTPOS_FEN,
    "kiwipete": "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1",
    "rook_endgame": "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1",
}

ALGORITHMS: Dict[str, Callable[..., SearchResult]] = {
    "minimax": minimax,
    "alphabeta": alphabeta,
}


def bench_position(name: str, fen: str, depth: int, algorithms: List[str]) -> Dict[str, Any]:
    state = GameState.from_fen(fen)
    out: Dict[str, Any] = {"name": name, "fen": fen, "depth": depth}
    for algo in algorithms:
        start = time.perf_counter()
        res = ALGORITHMS[algo](state, depth, evaluate)
        time_ms = int((time.perf_counter() - start) * 1000)
        out[algo] = {
            "value": res.value,
            "candidates": sorted(state.move_to(s).to_uci() for s in res.successors),
            "nodes": res.nodes,
            "time_ms": time_ms,
            "nps": int(res.nodes * 1000 / max(1, time_ms)),
        }
    return out


def main() -> None:
    parser = argparse.ArgumentParser(description="Compare minimax and alpha-beta node counts")
    parser.add_argument("--depth", type=int, default=3, help="Search depth (default: 3)")
    parser.add_argument(
        "--algorithm",
        choices=sorted(ALGORITHMS),
        action="append",
        help="Algorithm to run (repeatable, default: both)",
    )
    parser.add_argument("--position", choices=sorted(POSITIONS), action="append")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    args = parser.parse_args()

    algorithms = args.algorithm or ["minimax", "alphabeta"]
    names = args.position or list(POSITIONS)

    t0 = time.perf_counter()
    results = [bench_position(n, POSITIONS[n], args.depth, algorithms) for n in names]
    payload = {
        "meta": {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "python": sys.version.split()[0],
            "platform": platform.platform(),
        },
        "results": results,
        "summary": {"total_time_ms": int((time.perf_counter() - t0) * 1000)},
    }
    print(json.dumps(payload, indent=2 if args.pretty else None))


if __name__ == "__main__":
    main()

"""Runtime settings read from the environment.

Every setting has a default; set ``CHAI_<NAME>`` to override it.
"""

from __future__ import annotations

import logging
import os
from typing import List, Tuple


logger = logging.getLogger(__name__)

# Track which parameters were overridden from environment
_overridden_params: List[Tuple[str, object, object]] = []


def _env_int(key: str, default: int) -> int:
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        result = int(val)
    except ValueError as e:
        raise ValueError(f"{key} must be an integer, got {val!r}") from e
    _overridden_params.append((key, default, result))
    return result


def _env_str(key: str, default: str) -> str:
    val = os.environ.get(key)
    if val is None:
        return default
    _overridden_params.append((key, default, val))
    return val


# Engine move depth when a request does not name one
SEARCH_DEPTH = _env_int("CHAI_SEARCH_DEPTH", 3)
# Requests asking for more are rejected; depth 4+ without pruning is millions of nodes
MAX_SEARCH_DEPTH = _env_int("CHAI_MAX_SEARCH_DEPTH", 5)
# 1 keeps the search in-process; more fans the root out over worker processes
SEARCH_WORKERS = _env_int("CHAI_SEARCH_WORKERS", 1)

HOST = _env_str("CHAI_HOST", "0.0.0.0")
PORT = _env_int("CHAI_PORT", 8000)
LOG_LEVEL = _env_str("CHAI_LOG_LEVEL", "INFO").upper()


def log_overrides() -> None:
    for key, default, value in _overridden_params:
        logger.info("config override %s=%r (default %r)", key, value, default)

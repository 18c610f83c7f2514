from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from ...engine.game import Game


class InMemorySessionStore:
    """Thread-safe in-memory store of game sessions keyed by ``game_id``.

    Sync endpoints run in a thread pool, so every access holds the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._games: Dict[str, Game] = {}

    def create(self, game: Optional[Game] = None) -> str:
        gid = str(uuid.uuid4())
        with self._lock:
            self._games[gid] = game if game is not None else Game.new()
        return gid

    def get(self, game_id: str) -> Optional[Game]:
        with self._lock:
            return self._games.get(game_id)

    @contextmanager
    def locked(self, game_id: str) -> Iterator[Optional[Game]]:
        """Hold the store lock while the caller reads and mutates one game."""
        with self._lock:
            yield self._games.get(game_id)

    def set(self, game_id: str, game: Game) -> None:
        with self._lock:
            if game_id not in self._games:
                raise KeyError(game_id)
            self._games[game_id] = game

    def delete(self, game_id: str) -> bool:
        with self._lock:
            return self._games.pop(game_id, None) is not None

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._games)

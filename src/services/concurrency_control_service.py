"""
Concurrency Control Service for Quizboard

Per-board serialization point for membership mutations. Two units of work
touching the same board run their read-modify-write one after the other;
units of work on different boards never wait on each other.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Optional

from src.config.lobby_settings import LobbySettings, get_lobby_settings

logger = logging.getLogger(__name__)


class ConcurrencyControlService:
    """Manages the keyed lock map used around board mutations."""

    def __init__(self, settings: Optional[LobbySettings] = None):
        # Per-board locks for fine-grained control
        self._board_locks: Dict[str, threading.RLock] = {}
        # Lock for managing board locks themselves
        self._locks_lock = threading.Lock()
        self.lobby_settings = settings or get_lobby_settings()

    @property
    def serialization_enabled(self) -> bool:
        return self.lobby_settings.serialize_board_mutations

    def get_board_lock(self, board_id: str) -> threading.RLock:
        """Get or create a lock for a specific board."""
        with self._locks_lock:
            if board_id not in self._board_locks:
                self._board_locks[board_id] = threading.RLock()
            return self._board_locks[board_id]

    def prune_board_locks(self, active_board_ids: Iterable[str]) -> int:
        """
        Drop locks for boards that no longer exist.

        Returns:
            Number of locks removed
        """
        active = set(active_board_ids)
        with self._locks_lock:
            stale = [board_id for board_id in self._board_locks if board_id not in active]
            for board_id in stale:
                del self._board_locks[board_id]
        if stale:
            logger.debug(f"Pruned {len(stale)} board locks")
        return len(stale)

    @contextmanager
    def board_operation(self, board_id: str):
        """Context manager for serialized board mutations."""
        if not self.serialization_enabled:
            yield
            return

        board_lock = self.get_board_lock(board_id)
        with board_lock:
            yield

    def get_lock_count(self) -> int:
        with self._locks_lock:
            return len(self._board_locks)

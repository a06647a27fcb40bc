"""
Inactivity Sweep Service - Periodic cleanup of departed players.

This service handles:
- Removing players whose connection has been gone longer than the
  inactivity timeout (the administrative removeInactive path)
- Deleting orphaned player documents left by an interrupted leave
- Pruning lock entries for boards that no longer exist
"""

import logging
import threading
import time
from typing import Dict, Optional

from src.config.lobby_settings import LobbySettings, get_lobby_settings
from src.core.errors import LobbyError, StoreUnavailableError

logger = logging.getLogger(__name__)


class InactivitySweepService:
    """Runs the inactivity and orphan sweeps on a background thread."""

    def __init__(self, lobby_coordinator, connection_registry, membership_service, concurrency_control,
                 settings: Optional[LobbySettings] = None):
        """Initialize the sweep service.

        Args:
            lobby_coordinator: LobbyCoordinator used for removeInactive
            connection_registry: ConnectionRegistry holding absences
            membership_service: MembershipService for orphan cleanup
            concurrency_control: ConcurrencyControlService whose locks get pruned
            settings: Optional lobby settings (defaults to the global instance)
        """
        self.coordinator = lobby_coordinator
        self.registry = connection_registry
        self.membership = membership_service
        self.concurrency_control = concurrency_control
        self.lobby_settings = settings or get_lobby_settings()
        self.running = False
        self.sweep_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def start(self) -> None:
        """Start the background sweep loop."""
        if self.running:
            return
        self.running = True
        self._stop_event.clear()
        self.sweep_thread = threading.Thread(target=self._sweep_loop, daemon=True)
        self.sweep_thread.start()
        logger.info("InactivitySweepService started")

    def stop(self) -> None:
        """Stop the background sweep loop."""
        self.running = False
        self._stop_event.set()
        if self.sweep_thread and self.sweep_thread.is_alive():
            self.sweep_thread.join(timeout=2)
        logger.info("InactivitySweepService stopped")

    def _sweep_loop(self) -> None:
        interval = self.lobby_settings.inactivity_sweep_interval_seconds
        while self.running:
            try:
                self.sweep_once()
            except Exception as e:
                logger.error(f"Error in sweep loop: {e}", exc_info=True)
            self._stop_event.wait(interval)

    def sweep_once(self, now: Optional[float] = None) -> Dict[str, int]:
        """Run one sweep pass.

        Returns:
            Counts of evicted players, deleted orphans and pruned locks
        """
        return {
            'evicted': self._evict_inactive_players(now),
            'orphans': self._delete_orphaned_players(),
            'locks_pruned': self._prune_locks()
        }

    def _evict_inactive_players(self, now: Optional[float]) -> int:
        timeout = self.lobby_settings.inactivity_timeout_seconds
        now = time.time() if now is None else now
        evicted = 0

        for board_id, player_id in self.registry.get_expired_absences(timeout, now):
            try:
                self.coordinator.remove_inactive(board_id, player_id)
                evicted += 1
                logger.info(f"Evicted inactive player {player_id} from board {board_id}")
            except StoreUnavailableError as e:
                # Absence kept; next pass tries again
                logger.warning(f"Store unavailable evicting player {player_id}: {e}")
            except LobbyError as e:
                # Already gone (left, evicted or board removed)
                self.registry.clear_absence(player_id)
                logger.debug(f"Dropped absence for player {player_id}: {e.code.value}")

        return evicted

    def _delete_orphaned_players(self) -> int:
        try:
            return self.membership.sweep_orphaned_players(self.lobby_settings.orphan_grace_seconds)
        except StoreUnavailableError as e:
            logger.warning(f"Store unavailable during orphan sweep: {e}")
            return 0

    def _prune_locks(self) -> int:
        try:
            board_ids = self.membership.list_board_ids()
        except StoreUnavailableError as e:
            logger.warning(f"Store unavailable during lock pruning: {e}")
            return 0
        return self.concurrency_control.prune_board_locks(board_ids)

"""
Connection Registry - Process-wide record of live Socket.IO connections.

This service handles:
- Connection registration and teardown
- Per-connection lobby state and bound board/player identity
- Room membership (board_id -> connection ids)
- Absence tracking for players whose connection went away without leaving

One instance is created at application start and torn down by shutdown();
it is passed to the services that need it rather than reached as a global.
"""

import logging
import threading
import time
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from src.core.connection_states import ConnectionState
from src.core.errors import ErrorCode, LobbyError

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Tracks live connections, their lobby state and room membership."""

    def __init__(self):
        """Initialize the connection registry."""
        # sid -> connection info
        self._connections: Dict[str, Dict[str, Any]] = {}
        # board_id -> set of sids bound to that board's room
        self._rooms: Dict[str, Set[str]] = {}
        # player_id -> {'board_id', 'since'}
        self._absences: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.RLock()
        self._closed = False
        logger.info("ConnectionRegistry initialized")

    def _new_connection(self, sid: str) -> Dict[str, Any]:
        return {
            'sid': sid,
            'state': ConnectionState.ANONYMOUS,
            'board_id': None,
            'player_id': None,
            'display_name': None,
            'connected_at': time.time()
        }

    def _leave_room_locked(self, sid: str, board_id: Optional[str]) -> None:
        if board_id is None:
            return
        members = self._rooms.get(board_id)
        if members is None:
            return
        members.discard(sid)
        if not members:
            del self._rooms[board_id]

    # Connection lifecycle

    def register(self, sid: str) -> None:
        """Register a freshly connected transport session.

        Args:
            sid: Socket.IO connection ID
        """
        with self._lock:
            if self._closed:
                logger.warning(f"Registry closed, ignoring connection {sid}")
                return
            self._connections[sid] = self._new_connection(sid)
        logger.debug(f"Registered connection {sid}")

    def unregister(self, sid: str) -> Optional[Dict[str, Any]]:
        """Discard a connection after transport disconnect.

        A connection that was bound to a player leaves that player recorded
        as absent; it is not removed from its board.

        Args:
            sid: Socket.IO connection ID

        Returns:
            The connection info as it was before removal, or None
        """
        with self._lock:
            connection = self._connections.pop(sid, None)
            if connection is None:
                return None

            board_id = connection['board_id']
            player_id = connection['player_id']
            self._leave_room_locked(sid, board_id)
            if player_id is not None and not self._player_has_connection_locked(player_id):
                self._absences[player_id] = {'board_id': board_id, 'since': time.time()}

            previous = dict(connection)

        logger.debug(f"Unregistered connection {sid} (was {previous['state'].value})")
        return previous

    def is_connected(self, sid: str) -> bool:
        with self._lock:
            return sid in self._connections

    def get(self, sid: str) -> Optional[Dict[str, Any]]:
        """Get a copy of the connection info for ``sid``."""
        with self._lock:
            connection = self._connections.get(sid)
            return dict(connection) if connection else None

    def get_state(self, sid: str) -> ConnectionState:
        """Current lobby state; DISCONNECTED when the sid is unknown."""
        with self._lock:
            connection = self._connections.get(sid)
            return connection['state'] if connection else ConnectionState.DISCONNECTED

    # State machine support

    def compare_and_set_state(self, sid: str, expected: Iterable[ConnectionState],
                              new_state: ConnectionState) -> bool:
        """Atomically move ``sid`` to ``new_state`` if it is in one of ``expected``.

        Returns:
            True if the transition happened
        """
        expected = set(expected)
        with self._lock:
            connection = self._connections.get(sid)
            if connection is None or connection['state'] not in expected:
                return False
            connection['state'] = new_state
            return True

    def bind_player(self, sid: str, board_id: str, player_id: str, display_name: str) -> bool:
        """Bind a connection to a player and the board's room.

        Returns:
            False if the connection has already gone away

        Raises:
            LobbyError: PLAYER_ALREADY_CONNECTED if another connection holds the player
        """
        with self._lock:
            connection = self._connections.get(sid)
            if connection is None:
                return False
            if any(other_sid != sid and other['player_id'] == player_id
                   for other_sid, other in self._connections.items()):
                raise LobbyError('Player is already connected', code=ErrorCode.PLAYER_ALREADY_CONNECTED)

            self._leave_room_locked(sid, connection['board_id'])
            connection.update({
                'state': ConnectionState.JOINED,
                'board_id': board_id,
                'player_id': player_id,
                'display_name': display_name
            })
            self._rooms.setdefault(board_id, set()).add(sid)
            self._absences.pop(player_id, None)
        logger.debug(f"Bound connection {sid} to player {player_id} on board {board_id}")
        return True

    def unbind_player(self, sid: str) -> Optional[Dict[str, Any]]:
        """Return a connection to ANONYMOUS and drop its room membership.

        Returns:
            The connection info before unbinding, or None if unknown
        """
        with self._lock:
            connection = self._connections.get(sid)
            if connection is None:
                return None

            previous = dict(connection)
            self._leave_room_locked(sid, connection['board_id'])
            connection.update({
                'state': ConnectionState.ANONYMOUS,
                'board_id': None,
                'player_id': None,
                'display_name': None
            })
        return previous

    # Rooms

    def get_room_sids(self, board_id: str) -> Set[str]:
        with self._lock:
            return set(self._rooms.get(board_id, set()))

    def _player_has_connection_locked(self, player_id: str) -> bool:
        return any(c['player_id'] == player_id for c in self._connections.values())

    def find_sids_for_player(self, player_id: str) -> List[str]:
        with self._lock:
            return [sid for sid, c in self._connections.items() if c['player_id'] == player_id]

    # Absences

    def mark_absent(self, player_id: str, board_id: str) -> None:
        """Record that no live connection represents ``player_id``."""
        with self._lock:
            if self._player_has_connection_locked(player_id):
                return
            self._absences.setdefault(player_id, {'board_id': board_id, 'since': time.time()})

    def clear_absence(self, player_id: str) -> None:
        with self._lock:
            self._absences.pop(player_id, None)

    def is_absent(self, player_id: str) -> bool:
        with self._lock:
            return player_id in self._absences

    def get_expired_absences(self, timeout_seconds: float, now: Optional[float] = None) -> List[Tuple[str, str]]:
        """Players absent for longer than ``timeout_seconds``.

        Returns:
            List of (board_id, player_id) tuples
        """
        now = time.time() if now is None else now
        with self._lock:
            return [
                (absence['board_id'], player_id)
                for player_id, absence in self._absences.items()
                if now - absence['since'] >= timeout_seconds
            ]

    # Lifecycle

    def get_connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def get_debug_info(self) -> Dict[str, Any]:
        """Get debug information about live connections."""
        with self._lock:
            return {
                'total_connections': len(self._connections),
                'connections_by_board': {board_id: len(sids) for board_id, sids in self._rooms.items()},
                'absent_players': len(self._absences)
            }

    def shutdown(self) -> None:
        """Tear the registry down at process stop."""
        with self._lock:
            self._closed = True
            count = len(self._connections)
            self._connections.clear()
            self._rooms.clear()
            self._absences.clear()
        logger.info(f"ConnectionRegistry shut down ({count} connections dropped)")

    @property
    def is_closed(self) -> bool:
        return self._closed

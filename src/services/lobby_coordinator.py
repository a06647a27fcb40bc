"""
Lobby Coordinator - Orchestrates lobby requests end to end.

For every request the coordinator:
1. Moves the connection through its lobby state machine
2. Calls the membership service (validation + store mutation)
3. Only if that succeeded, updates room membership and notifies the
   requester and the rest of the room through the live channel

Errors go to the requester only; nothing is broadcast unless the mutation
fully succeeded. Store-unavailable failures are retried a bounded number of
times, domain errors never are.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from src.config.lobby_settings import LobbySettings, get_lobby_settings
from src.core.connection_states import ConnectionState
from src.core.errors import ErrorCode, LobbyError, StoreUnavailableError

logger = logging.getLogger(__name__)


# Server -> client events
JOINED = 'joined'
JOIN_ERROR = 'joinError'
LEFT = 'left'
LEAVE_ERROR = 'leaveError'
RESUMED = 'resumed'
RESUME_ERROR = 'resumeError'
PLAYER_ADDED = 'playerAdded'
PLAYER_REMOVED = 'playerRemoved'
PLAYER_EVICTED = 'playerEvicted'

# Leave failures meaning the bound player no longer exists on the board
MEMBERSHIP_LOST = (ErrorCode.PLAYER_NOT_IN_BOARD, ErrorCode.BOARD_NOT_FOUND)


class LobbyCoordinator:
    """Binds membership mutations to live notifications and connection state."""

    def __init__(self, membership_service, connection_registry, live_channel,
                 settings: Optional[LobbySettings] = None):
        """Initialize the lobby coordinator.

        Args:
            membership_service: MembershipService applying join/leave
            connection_registry: ConnectionRegistry for per-connection state
            live_channel: LiveChannel for room binding and fan-out
            settings: Optional lobby settings (defaults to the global instance)
        """
        self.membership = membership_service
        self.registry = connection_registry
        self.live_channel = live_channel
        self.lobby_settings = settings or get_lobby_settings()

    # Helpers

    def _with_store_retry(self, operation: str, func: Callable, *args) -> Any:
        """Call ``func`` retrying errors marked retryable (store unavailability)."""
        retries = self.lobby_settings.store_retry_attempts
        attempt = 0
        while True:
            try:
                return func(*args)
            except LobbyError as e:
                if not e.retryable:
                    raise
                if attempt >= retries:
                    logger.error(f"{operation} failed, store unavailable after {attempt + 1} attempts: {e}")
                    raise
                attempt += 1
                logger.warning(f"{operation} hit unavailable store, retrying ({attempt}/{retries})")
                delay = self.lobby_settings.store_retry_delay_seconds
                if delay:
                    time.sleep(delay)

    def send_error(self, sid: str, event: str, error: LobbyError) -> None:
        """Report a rejected request to the requesting connection only."""
        logger.warning(f"Rejected request from {sid}: {error.code.value} - {error.message}")
        self.live_channel.send(sid, event, {
            'reason': error.reason,
            'code': error.code.value,
            'message': error.message
        })

    def _roster(self, board_id: str) -> List[Dict]:
        """Board roster for acknowledgments; empty when the store can't be read."""
        try:
            return [
                {'playerId': p['player_id'], 'displayName': p['display_name'], 'score': p['score']}
                for p in self.membership.get_board_roster(board_id)
            ]
        except StoreUnavailableError as e:
            logger.warning(f"Could not load roster for board {board_id}: {e}")
            return []

    def _restore_state(self, sid: str, from_state: ConnectionState, to_state: ConnectionState) -> None:
        self.registry.compare_and_set_state(sid, [from_state], to_state)

    # Connection lifecycle

    def handle_connect(self, sid: str) -> None:
        self.registry.register(sid)

    def handle_disconnect(self, sid: str) -> Optional[Dict]:
        """Transport went away. The player, if any, stays on its board."""
        previous = self.registry.unregister(sid)
        if previous and previous['player_id']:
            logger.info(
                f"Connection {sid} dropped while bound to player {previous['player_id']} "
                f"on board {previous['board_id']}; player kept pending inactivity timeout"
            )
        return previous

    # Requests

    def request_join(self, sid: str, pin: str, display_name: str) -> Optional[Dict]:
        """Handle joinRequest from an ANONYMOUS connection.

        Returns:
            The membership result on success, None when the request was rejected
        """
        if not self.registry.compare_and_set_state(sid, [ConnectionState.ANONYMOUS], ConnectionState.JOINING):
            self.send_error(sid, JOIN_ERROR, LobbyError(
                'Connection has already joined a board', code=ErrorCode.ALREADY_JOINED
            ))
            return None

        try:
            result = self._with_store_retry('join', self.membership.join, pin, display_name)
        except LobbyError as e:
            self._restore_state(sid, ConnectionState.JOINING, ConnectionState.ANONYMOUS)
            self.send_error(sid, JOIN_ERROR, e)
            return None
        except Exception:
            self._restore_state(sid, ConnectionState.JOINING, ConnectionState.ANONYMOUS)
            raise

        board_id = result['board_id']
        player_id = result['player_id']

        if self.registry.bind_player(sid, board_id, player_id, display_name):
            self.live_channel.bind(sid, board_id)
            self.live_channel.send(sid, JOINED, {
                'boardId': board_id,
                'playerId': player_id,
                'displayName': display_name,
                'players': self._roster(board_id)
            })
        else:
            # Requester disconnected mid-join; the player stays until the inactivity sweep
            self.registry.mark_absent(player_id, board_id)
            logger.info(f"Connection {sid} gone before join of {player_id} completed")

        self.live_channel.broadcast(board_id, PLAYER_ADDED, {'displayName': display_name}, exclude_sid=sid)
        return result

    def request_leave(self, sid: str, board_id: str, player_id: str) -> Optional[Dict]:
        """Handle leaveRequest from a JOINED connection."""
        connection = self.registry.get(sid)
        if (not connection
                or connection['state'] != ConnectionState.JOINED
                or connection['board_id'] != board_id
                or connection['player_id'] != player_id):
            self.send_error(sid, LEAVE_ERROR, LobbyError(
                'Connection is not joined as this player', code=ErrorCode.NOT_JOINED
            ))
            return None

        if not self.registry.compare_and_set_state(sid, [ConnectionState.JOINED], ConnectionState.LEAVING):
            self.send_error(sid, LEAVE_ERROR, LobbyError(
                'Connection is not joined as this player', code=ErrorCode.NOT_JOINED
            ))
            return None

        try:
            result = self._with_store_retry('leave', self.membership.leave, board_id, player_id)
        except LobbyError as e:
            if e.code in MEMBERSHIP_LOST:
                # Nothing left to rejoin; the connection becomes anonymous again
                self.registry.unbind_player(sid)
                self.registry.clear_absence(player_id)
                self.live_channel.unbind(sid, board_id)
            else:
                self._restore_state(sid, ConnectionState.LEAVING, ConnectionState.JOINED)
            self.send_error(sid, LEAVE_ERROR, e)
            return None
        except Exception:
            self._restore_state(sid, ConnectionState.LEAVING, ConnectionState.JOINED)
            raise

        self.registry.unbind_player(sid)
        self.registry.clear_absence(player_id)
        self.live_channel.unbind(sid, board_id)
        self.live_channel.send(sid, LEFT, {})
        self.live_channel.broadcast(board_id, PLAYER_REMOVED, {'playerId': player_id}, exclude_sid=sid)
        return result

    def request_resume(self, sid: str, board_id: str, player_id: str) -> Optional[Dict]:
        """Rebind an ANONYMOUS connection to a player that is still a board member."""
        if not self.registry.compare_and_set_state(sid, [ConnectionState.ANONYMOUS], ConnectionState.JOINING):
            self.send_error(sid, RESUME_ERROR, LobbyError(
                'Connection has already joined a board', code=ErrorCode.ALREADY_JOINED
            ))
            return None

        def bind(player):
            bound = self.registry.bind_player(sid, board_id, player_id, player['display_name'])
            if bound:
                self.live_channel.bind(sid, board_id)
            return player, bound

        try:
            if self.registry.find_sids_for_player(player_id):
                raise LobbyError('Player is already connected', code=ErrorCode.PLAYER_ALREADY_CONNECTED)
            # Verify and bind under the board lock so a concurrent removal can't slip between them
            player, bound = self._with_store_retry('resume', self.membership.claim_membership,
                                                   board_id, player_id, bind)
        except LobbyError as e:
            self._restore_state(sid, ConnectionState.JOINING, ConnectionState.ANONYMOUS)
            self.send_error(sid, RESUME_ERROR, e)
            return None
        except Exception:
            self._restore_state(sid, ConnectionState.JOINING, ConnectionState.ANONYMOUS)
            raise

        display_name = player['display_name']
        if not bound:
            logger.info(f"Connection {sid} gone before resume of {player_id} completed")
            return None

        self.live_channel.send(sid, RESUMED, {
            'boardId': board_id,
            'playerId': player_id,
            'displayName': display_name,
            'players': self._roster(board_id)
        })
        logger.info(f"Player {display_name} ({player_id}) resumed on board {board_id} via {sid}")
        return {'board_id': board_id, 'player_id': player_id, 'display_name': display_name}

    def remove_inactive(self, board_id: str, player_id: str) -> Dict:
        """Administrative removal of a player who stopped participating.

        Raises:
            LobbyError: Any membership failure, for the administrative caller
        """
        result = self._with_store_retry('remove_inactive', self.membership.remove_inactive, board_id, player_id)

        # The evicted player's own connection, if still bound, hears it too
        self.live_channel.broadcast(board_id, PLAYER_EVICTED, {'playerId': player_id})

        for sid in self.registry.find_sids_for_player(player_id):
            self.registry.unbind_player(sid)
            self.live_channel.unbind(sid, board_id)
        self.registry.clear_absence(player_id)
        return result

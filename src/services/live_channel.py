"""
Live Channel - Socket.IO room binding and event fan-out.

This service handles:
- Binding/unbinding connections to a board's room
- Messages addressed to a single connection
- Room-wide broadcasts with an optionally excluded sender

Delivery is best effort. A send to a connection whose transport is gone is
dropped and logged; transport errors never reach the caller. The session
store remains the source of truth.
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class LiveChannel:
    """Maps boards to Socket.IO rooms and delivers lobby notifications."""

    def __init__(self, socketio, connection_registry, namespace: str = '/'):
        """Initialize the live channel.

        Args:
            socketio: Flask-SocketIO instance for emitting messages
            connection_registry: ConnectionRegistry tracking live connections
            namespace: Socket.IO namespace the lobby runs on
        """
        self.socketio = socketio
        self.registry = connection_registry
        self.namespace = namespace

    # Room membership

    def bind(self, sid: str, board_id: str) -> bool:
        """Add a connection to a board's room."""
        try:
            self.socketio.server.enter_room(sid, board_id, namespace=self.namespace)
            logger.debug(f'Connection {sid} entered room {board_id}')
            return True
        except Exception as e:
            logger.warning(f'Could not add connection {sid} to room {board_id}: {e}')
            return False

    def unbind(self, sid: str, board_id: str) -> bool:
        """Remove a connection from a board's room."""
        try:
            self.socketio.server.leave_room(sid, board_id, namespace=self.namespace)
            logger.debug(f'Connection {sid} left room {board_id}')
            return True
        except Exception as e:
            logger.warning(f'Could not remove connection {sid} from room {board_id}: {e}')
            return False

    # Emission

    def send(self, sid: str, event: str, data: Dict[str, Any]) -> bool:
        """Emit an event to a single connection.

        Returns:
            True if the message was handed to the transport
        """
        if not self.registry.is_connected(sid):
            logger.debug(f'Dropped {event} for gone connection {sid}')
            return False

        try:
            self.socketio.emit(event, data, to=sid, namespace=self.namespace)
            logger.debug(f'Emitted {event} to connection {sid}')
            return True
        except Exception as e:
            logger.error(f'Error emitting {event} to connection {sid}: {e}')
            return False

    def broadcast(self, board_id: str, event: str, data: Dict[str, Any],
                  exclude_sid: Optional[str] = None) -> bool:
        """Emit an event to every connection in a board's room except ``exclude_sid``."""
        try:
            self.socketio.emit(event, data, to=board_id, skip_sid=exclude_sid, namespace=self.namespace)
            logger.debug(f'Broadcasted {event} to room {board_id} (excluding {exclude_sid})')
            return True
        except Exception as e:
            logger.error(f'Error broadcasting {event} to room {board_id}: {e}')
            return False
